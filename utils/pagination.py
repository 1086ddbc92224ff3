"""
Paginated inline keyboards.

Turns a list of labels into one page of selection buttons plus a
Previous/Next/Back navigation row.
"""

import math
from dataclasses import dataclass
from typing import Callable, List, Optional, Tuple

from aiogram.types import InlineKeyboardButton, InlineKeyboardMarkup

# Top-level listings have nowhere to go back to
TOP_LEVEL_PREFIXES = frozenset({"admin_subject", "user_subject"})

BACK_CALLBACK = "back"
PAGINATE_PREFIX = "paginate_"


@dataclass
class PaginatedKeyboard:
    reply_markup: InlineKeyboardMarkup
    total_pages: int
    current_page: int
    prefix: str
    items_per_page: int


def paginate(
    items: List[str],
    page: int,
    prefix: str,
    items_per_page: int = 5,
    caption: Optional[Callable[[str], str]] = None,
) -> PaginatedKeyboard:
    """
    Build one page of item buttons.

    Args:
        items: Ordered item labels
        page: Zero-based page index (callers check the range first)
        prefix: Callback data prefix; item buttons carry "<prefix>_<item>"
        items_per_page: Page size
        caption: Optional button text formatter, defaults to the item itself
    """
    if items_per_page < 1:
        raise ValueError(f"items_per_page must be positive, got {items_per_page}")
    total_pages = math.ceil(len(items) / items_per_page)
    start = page * items_per_page
    page_items = items[start:start + items_per_page]

    rows = [
        [InlineKeyboardButton(
            text=caption(item) if caption else item,
            callback_data=f"{prefix}_{item}",
        )]
        for item in page_items
    ]

    nav = []
    if page > 0:
        nav.append(InlineKeyboardButton(text="⬅️ Previous", callback_data=f"{PAGINATE_PREFIX}{prefix}_prev_{page - 1}"))
    if page < total_pages - 1:
        nav.append(InlineKeyboardButton(text="Next ➡️", callback_data=f"{PAGINATE_PREFIX}{prefix}_next_{page + 1}"))
    if prefix not in TOP_LEVEL_PREFIXES:
        nav.append(InlineKeyboardButton(text="🔙 Back", callback_data=BACK_CALLBACK))
    if nav:
        rows.append(nav)

    return PaginatedKeyboard(
        reply_markup=InlineKeyboardMarkup(inline_keyboard=rows),
        total_pages=total_pages,
        current_page=page,
        prefix=prefix,
        items_per_page=items_per_page,
    )


def is_page_in_range(page: int, total_pages: int) -> bool:
    return 0 <= page < total_pages


def parse_pagination_data(data: str) -> Tuple[str, str, int]:
    """
    Split "paginate_<prefix>_<prev|next>_<page>" into (prefix, direction, page).

    Raises ValueError for anything else.
    """
    if not data.startswith(PAGINATE_PREFIX):
        raise ValueError(f"Not a pagination callback: {data!r}")
    prefix, direction, page = (data[len(PAGINATE_PREFIX):].rsplit("_", 2) + ["", ""])[:3]
    if not prefix or direction not in ("prev", "next"):
        raise ValueError(f"Malformed pagination callback: {data!r}")
    try:
        return prefix, direction, int(page)
    except ValueError:
        raise ValueError(f"Malformed pagination page: {data!r}") from None
