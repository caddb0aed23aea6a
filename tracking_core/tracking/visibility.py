# tracking_core/tracking/visibility.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional


ROLE_IDS_KEY = "role_ids"
ROLE_NAMES_KEY = "role_names"


def _as_str_list(values: Optional[Iterable[Any]]) -> List[str]:
    if not values:
        return []
    return [str(v) for v in values if v is not None and str(v) != ""]


@dataclass(frozen=True)
class VisibilityQuery:
    """
    The role identity a reader presents when listing or fetching items.

    An empty query means "no role filtering requested" and callers skip the
    visibility filter entirely.
    """

    role_id: Optional[str] = None
    role_name: Optional[str] = None
    role_ids: List[str] = field(default_factory=list)
    role_names: List[str] = field(default_factory=list)

    @classmethod
    def from_params(cls, params: Optional[Dict[str, Any]] = None) -> "VisibilityQuery":
        params = params or {}
        role_id = params.get("role_id")
        role_name = params.get("role_name")
        return cls(
            role_id=str(role_id) if role_id not in (None, "") else None,
            role_name=str(role_name) if role_name not in (None, "") else None,
            role_ids=_as_str_list(params.get("role_ids")),
            role_names=_as_str_list(params.get("role_names")),
        )

    @property
    def is_empty(self) -> bool:
        return not (self.role_id or self.role_name or self.role_ids or self.role_names)

    def all_ids(self) -> set[str]:
        ids = set(self.role_ids)
        if self.role_id:
            ids.add(self.role_id)
        return ids

    def all_names(self) -> set[str]:
        names = set(self.role_names)
        if self.role_name:
            names.add(self.role_name)
        return names


def build_visibility(
    role_ids: Optional[Iterable[Any]] = None,
    role_names: Optional[Iterable[Any]] = None,
) -> Optional[Dict[str, List[str]]]:
    """
    Stored shape of an item's visibility attribute. Nothing supplied means public (None).
    """
    ids = _as_str_list(role_ids)
    names = _as_str_list(role_names)
    if not ids and not names:
        return None
    return {ROLE_IDS_KEY: ids, ROLE_NAMES_KEY: names}


def _item_visibility(item) -> Optional[Dict[str, Any]]:
    if isinstance(item, dict):
        return item.get("visibility")
    return getattr(item, "visibility", None)


def is_visible(
    item,
    role_id: Optional[str] = None,
    role_name: Optional[str] = None,
    role_ids: Optional[Iterable[str]] = None,
    role_names: Optional[Iterable[str]] = None,
) -> bool:
    """
    Items without a visibility attribute are public. Otherwise the item is
    visible iff any supplied role id or role name appears in the item's lists.
    """
    visibility = _item_visibility(item)
    if visibility is None:
        return True

    allowed_ids = {str(v) for v in (visibility.get(ROLE_IDS_KEY) or [])}
    allowed_names = {str(v) for v in (visibility.get(ROLE_NAMES_KEY) or [])}

    if role_id is not None and str(role_id) in allowed_ids:
        return True
    if role_name is not None and str(role_name) in allowed_names:
        return True
    if any(str(r) in allowed_ids for r in (role_ids or [])):
        return True
    if any(str(r) in allowed_names for r in (role_names or [])):
        return True

    return False


def is_visible_for(item, query: VisibilityQuery) -> bool:
    return is_visible(
        item,
        role_id=query.role_id,
        role_name=query.role_name,
        role_ids=query.role_ids,
        role_names=query.role_names,
    )
