from enum import Enum
from pydantic import BaseModel


class NoticeKind(str, Enum):
    SUCCESS = "success"
    ERROR = "error"
    INFO = "info"


class Notice(BaseModel):
    kind: NoticeKind
    message: str
