"""Memos API request and response types."""
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


class Visibility(str, Enum):
    PUBLIC = "PUBLIC"
    PROTECTED = "PROTECTED"
    PRIVATE = "PRIVATE"
    UNSPECIFIED = "VISIBILITY_UNSPECIFIED"


class RelationType(str, Enum):
    REFERENCE = "REFERENCE"
    COMMENT = "COMMENT"
    UNSPECIFIED = "TYPE_UNSPECIFIED"


@dataclass
class Memo:
    """A memo as returned by /api/v1/memos"""
    name: str = ""
    uid: str = ""
    creator: str = ""
    content: str = ""
    visibility: str = ""
    pinned: bool = False
    tags: List[str] = field(default_factory=list)
    create_time: str = ""
    update_time: str = ""
    display_time: str = ""
    snippet: str = ""

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Memo":
        return cls(
            name=data.get("name") or "",
            uid=data.get("uid") or "",
            creator=data.get("creator") or "",
            content=data.get("content") or "",
            visibility=data.get("visibility") or "",
            pinned=bool(data.get("pinned", False)),
            tags=list(data.get("tags") or []),
            create_time=data.get("createTime") or "",
            update_time=data.get("updateTime") or "",
            display_time=data.get("displayTime") or "",
            snippet=data.get("snippet") or "",
        )

    def to_summary(self) -> Dict[str, Any]:
        """Camel-cased dict with empty fields dropped; pinned is always kept."""
        summary = {
            "name": self.name,
            "uid": self.uid,
            "creator": self.creator,
            "content": self.content,
            "visibility": self.visibility,
            "pinned": self.pinned,
            "tags": self.tags,
            "createTime": self.create_time,
            "updateTime": self.update_time,
            "displayTime": self.display_time,
            "snippet": self.snippet,
        }
        return {k: v for k, v in summary.items() if k == "pinned" or v}


@dataclass
class SearchRequest:
    query: str = ""
    creator_id: Optional[int] = None
    tag: str = ""
    visibility: str = ""
    pinned: Optional[bool] = None
    limit: int = 0
    offset: int = 0
    page_token: str = ""
    order_by: str = ""
    show_deleted: bool = False


@dataclass
class SearchResponse:
    memos: List[Memo]
    next_page_token: str = ""

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SearchResponse":
        return cls(
            memos=[Memo.from_dict(m) for m in data.get("memos") or []],
            next_page_token=data.get("nextPageToken") or "",
        )


@dataclass
class MemoRelationInput:
    """A relation to set on a memo; related_memo may be a uid or memos/<uid>"""
    related_memo: str
    type: RelationType = RelationType.REFERENCE


@dataclass
class CreateMemoRequest:
    content: str
    visibility: str = ""
    pinned: Optional[bool] = None
    relations: List[MemoRelationInput] = field(default_factory=list)


@dataclass
class UpdateMemoRequest:
    content: Optional[str] = None
    visibility: Optional[str] = None
    pinned: Optional[bool] = None
    relations: Optional[List[MemoRelationInput]] = None
