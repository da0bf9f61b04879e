import pytest

from tlvwrite.errors import InvalidArgumentError
from tlvwrite.tags import (
    ANONYMOUS_TAG_NUM,
    COMMON_PROFILE_ID,
    CONTEXT_TAG_MAX_NUM,
    SPECIAL_TAG_MARKER,
    Tag,
    anonymous_tag,
    common_tag,
    context_tag,
    profile_tag,
    profile_tag_vendor_id,
)


def test_anonymous_tag_is_special():
    tag = anonymous_tag()
    assert tag.is_special() is True
    assert tag.is_anonymous is True
    assert tag.is_context is False
    assert tag.tag_num == ANONYMOUS_TAG_NUM
    assert tag.profile_id == SPECIAL_TAG_MARKER


def test_context_tag_is_special_and_keeps_number():
    tag = context_tag(1)
    assert tag.is_special() is True
    assert tag.is_context is True
    assert tag.is_anonymous is False
    assert tag.tag_num == 1


def test_context_tag_limits():
    assert context_tag(CONTEXT_TAG_MAX_NUM).tag_num == CONTEXT_TAG_MAX_NUM
    with pytest.raises(InvalidArgumentError):
        context_tag(CONTEXT_TAG_MAX_NUM + 1)
    with pytest.raises(InvalidArgumentError):
        context_tag(-1)


def test_common_tag_matches_profile_zero():
    assert common_tag(1) == profile_tag(0, 1)
    assert common_tag(0x1FFFF).profile_id == COMMON_PROFILE_ID
    assert common_tag(0x1FFFF).tag_num == 0x1FFFF
    assert common_tag(1).is_special() is False


def test_profile_tag_keeps_fields():
    tag = profile_tag(1, 0x1FFFF)
    assert tag.profile_id == 1
    assert tag.tag_num == 0x1FFFF
    assert tag.is_special() is False


@pytest.mark.parametrize(
    "vendor_id, profile_num, tag_num",
    [(1, 2, 3), (1, 2, 0x1FFFF), (0xFFFF, 0, 7), (0, 0xFFFF, 0)],
)
def test_vendor_tag_round_trip(vendor_id, profile_num, tag_num):
    tag = profile_tag_vendor_id(vendor_id, profile_num, tag_num)
    assert tag.vendor_id == vendor_id
    assert tag.profile_num == profile_num
    assert tag.tag_num == tag_num
    assert profile_tag(tag.profile_id, tag_num) == tag


def test_vendor_tag_rejects_out_of_range_parts():
    with pytest.raises(InvalidArgumentError):
        profile_tag_vendor_id(0x10000, 0, 0)
    with pytest.raises(InvalidArgumentError):
        profile_tag_vendor_id(0, 0x10000, 0)


def test_tag_rejects_out_of_range_values():
    with pytest.raises(InvalidArgumentError):
        Tag(-1, 0)
    with pytest.raises(InvalidArgumentError):
        Tag(0, 0x1_0000_0000)
    with pytest.raises(ValueError):
        profile_tag(0x1_0000_0000, 1)


def test_tags_are_hashable_and_compare_by_value():
    tags = {context_tag(3), context_tag(3), common_tag(3)}
    assert len(tags) == 2
    assert context_tag(3) != common_tag(3)


def test_tag_is_immutable():
    tag = common_tag(1)
    with pytest.raises(AttributeError):
        tag.tag_num = 2
    assert tag.tag_num == 1