"""TLV tags: a profile identifier paired with a tag number."""

from __future__ import annotations

from dataclasses import dataclass

from .errors import InvalidArgumentError

_U16_MAX = 0xFFFF
_U32_MAX = 0xFFFF_FFFF

#: Profile identifier that marks anonymous and context-specific tags.
SPECIAL_TAG_MARKER = _U32_MAX
#: Tag number carried by the anonymous tag.
ANONYMOUS_TAG_NUM = _U32_MAX
#: Largest tag number a context-specific tag may carry.
CONTEXT_TAG_MAX_NUM = 0xFF
#: Profile identifier of the common profile.
COMMON_PROFILE_ID = 0
#: Profile identifier meaning "no implicit profile".
PROFILE_ID_NOT_SPECIFIED = _U32_MAX


def _check_range(name: str, value: int, maximum: int) -> None:
    if not 0 <= value <= maximum:
        raise InvalidArgumentError(f"{name} {value!r} is outside 0..{maximum:#x}")


@dataclass(frozen=True)
class Tag:
    """A TLV tag: 32-bit profile identifier and 32-bit tag number."""

    profile_id: int
    tag_num: int

    def __post_init__(self) -> None:
        _check_range("profile id", self.profile_id, _U32_MAX)
        _check_range("tag number", self.tag_num, _U32_MAX)

    def is_special(self) -> bool:
        """Whether this is an anonymous or context-specific tag."""
        return self.profile_id == SPECIAL_TAG_MARKER

    @property
    def is_anonymous(self) -> bool:
        """Whether this is the anonymous tag."""
        return self.is_special() and self.tag_num == ANONYMOUS_TAG_NUM

    @property
    def is_context(self) -> bool:
        """Whether this is a context-specific tag."""
        return self.is_special() and self.tag_num <= CONTEXT_TAG_MAX_NUM

    @property
    def vendor_id(self) -> int:
        """Vendor identifier held in the high half of the profile identifier."""
        return self.profile_id >> 16

    @property
    def profile_num(self) -> int:
        """Profile number held in the low half of the profile identifier."""
        return self.profile_id & _U16_MAX


def anonymous_tag() -> Tag:
    """The tag for elements that carry no tag."""
    return Tag(SPECIAL_TAG_MARKER, ANONYMOUS_TAG_NUM)


def context_tag(tag_num: int) -> Tag:
    """A context-specific tag, valid inside structures and lists."""
    _check_range("context tag number", tag_num, CONTEXT_TAG_MAX_NUM)
    return Tag(SPECIAL_TAG_MARKER, tag_num)


def common_tag(tag_num: int) -> Tag:
    """A tag in the common profile."""
    return Tag(COMMON_PROFILE_ID, tag_num)


def profile_tag(profile_id: int, tag_num: int) -> Tag:
    """A tag in the given profile."""
    return Tag(profile_id, tag_num)


def profile_tag_vendor_id(vendor_id: int, profile_num: int, tag_num: int) -> Tag:
    """A tag in the profile formed from a vendor identifier and profile number."""
    _check_range("vendor id", vendor_id, _U16_MAX)
    _check_range("profile number", profile_num, _U16_MAX)
    return Tag((vendor_id << 16) | profile_num, tag_num)