import base64
import binascii
import os
import re
import uuid
from typing import Optional, Tuple

from app.core.exceptions import ValidationAppError
from app.core.paths import get_upload_dir


_DATA_URL_RE = re.compile(r"^data:(?P<kind>[\w.+-]+)/(?P<ext>[\w.+-]+)(?:;[\w=.+-]+)*;base64,(?P<data>.+)$", re.DOTALL)


def parse_data_url(data_url: str, expected_kind: str) -> Tuple[bytes, str, str]:
    """data URL → (바이트, 확장자, content-type). 형식/종류가 다르면 400."""
    m = _DATA_URL_RE.match(data_url or "")
    if not m or m.group("kind") != expected_kind:
        raise ValidationAppError(f"올바른 {expected_kind} data URL이 아닙니다.", code="INVALID_MEDIA")
    try:
        data = base64.b64decode(m.group("data"), validate=False)
    except (binascii.Error, ValueError):
        raise ValidationAppError("base64 디코딩에 실패했습니다.", code="INVALID_MEDIA")
    if not data:
        raise ValidationAppError("빈 파일입니다.", code="INVALID_MEDIA")
    ext = m.group("ext").split("+")[0]
    return data, ext, f"{m.group('kind')}/{m.group('ext')}"


class Storage:
    def save_bytes(self, data: bytes, *, content_type: Optional[str] = None, key_hint: Optional[str] = None) -> str:
        raise NotImplementedError


class LocalStorage(Storage):
    def __init__(self, base_dir: str, public_base: str = "/static") -> None:
        self.base_dir = base_dir
        self.public_base = public_base.rstrip("/")
        os.makedirs(self.base_dir, exist_ok=True)

    def save_bytes(self, data: bytes, *, content_type: Optional[str] = None, key_hint: Optional[str] = None) -> str:
        ext = ".bin"
        if key_hint and "." in key_hint:
            ext = "." + key_hint.split(".")[-1]
        # key_hint의 디렉토리 부분(audio/, avatars/)은 하위 폴더로 유지
        subdir = os.path.dirname(key_hint or "")
        target_dir = os.path.join(self.base_dir, subdir) if subdir else self.base_dir
        os.makedirs(target_dir, exist_ok=True)
        name = f"{uuid.uuid4()}{ext}"
        with open(os.path.join(target_dir, name), "wb") as f:
            f.write(data)
        rel = f"{subdir}/{name}" if subdir else name
        return f"{self.public_base}/{rel}"

    def save_data_url(self, data_url: str, *, kind: str, folder: str) -> str:
        data, ext, content_type = parse_data_url(data_url, kind)
        return self.save_bytes(data, content_type=content_type, key_hint=f"{folder}/upload.{ext}")


def get_storage() -> LocalStorage:
    return LocalStorage(get_upload_dir())
