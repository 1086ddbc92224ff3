"""Tests for the paginated inline keyboard helper."""

import math

import pytest

from utils.pagination import is_page_in_range, paginate, parse_pagination_data
from helpers import callback_data


def _item_buttons(keyboard):
    return [b for row in keyboard.reply_markup.inline_keyboard for b in row
            if b.callback_data.startswith(keyboard.prefix + "_")]


@pytest.mark.parametrize("n", [1, 4, 5, 6, 10, 11, 23])
@pytest.mark.parametrize("k", [1, 3, 5])
def test_page_sizes(n, k):
    items = [f"item{i}" for i in range(n)]
    total_pages = math.ceil(n / k)
    for page in range(total_pages):
        keyboard = paginate(items, page, "user_chapter", items_per_page=k)
        assert keyboard.total_pages == total_pages
        assert keyboard.current_page == page
        assert keyboard.items_per_page == k
        assert len(_item_buttons(keyboard)) == min(k, n - page * k)


def test_item_callback_data():
    keyboard = paginate(["Optics", "Waves"], 0, "user_chapter")
    data = callback_data(keyboard.reply_markup)
    assert data[:2] == ["user_chapter_Optics", "user_chapter_Waves"]


def test_navigation_buttons():
    items = [str(i) for i in range(12)]

    first = callback_data(paginate(items, 0, "user_item").reply_markup)
    assert "paginate_user_item_next_1" in first
    assert not any("_prev_" in d for d in first)

    middle = callback_data(paginate(items, 1, "user_item").reply_markup)
    assert "paginate_user_item_prev_0" in middle
    assert "paginate_user_item_next_2" in middle

    last = callback_data(paginate(items, 2, "user_item").reply_markup)
    assert "paginate_user_item_prev_1" in last
    assert not any("_next_" in d for d in last)
    assert last[-1] == "back"


@pytest.mark.parametrize("prefix", ["admin_subject", "user_subject"])
def test_top_level_has_no_back(prefix):
    data = callback_data(paginate(["Physics"], 0, prefix).reply_markup)
    assert "back" not in data


def test_empty_list():
    keyboard = paginate([], 0, "user_chapter")
    assert keyboard.total_pages == 0
    assert _item_buttons(keyboard) == []
    assert callback_data(keyboard.reply_markup) == ["back"]
    assert not is_page_in_range(0, keyboard.total_pages)


def test_caption():
    keyboard = paginate(["1"], 0, "user_item", caption=lambda label: f"Lectures {label}")
    assert keyboard.reply_markup.inline_keyboard[0][0].text == "Lectures 1"


def test_page_range():
    assert is_page_in_range(0, 2)
    assert is_page_in_range(1, 2)
    assert not is_page_in_range(2, 2)
    assert not is_page_in_range(-1, 2)


def test_parse_pagination_data():
    assert parse_pagination_data("paginate_user_chapter_next_3") == ("user_chapter", "next", 3)
    assert parse_pagination_data("paginate_admin_subject_prev_0") == ("admin_subject", "prev", 0)


@pytest.mark.parametrize("data", [
    "user_chapter_next_1",
    "paginate_",
    "paginate_user_chapter_sideways_1",
    "paginate_user_chapter_next_x",
    "paginate__next_1",
])
def test_parse_pagination_data_rejects_malformed(data):
    with pytest.raises(ValueError):
        parse_pagination_data(data)


@pytest.mark.parametrize("k", [0, -1])
def test_rejects_non_positive_page_size(k):
    with pytest.raises(ValueError):
        paginate(["a"], 0, "user_chapter", items_per_page=k)
