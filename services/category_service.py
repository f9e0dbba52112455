from utils.constants import (
    CATEGORY_ALIASES,
    DIRECT_DEBIT_CATEGORIES,
    OTHER_CATEGORY,
)


def reconcile_category(raw: str | None, canonical: list[str]) -> str:
    """Map a free-text label onto one of the canonical categories.

    Exact match (ignoring case) wins; otherwise the first canonical label that
    contains, or is contained in, the input; otherwise 'Other'.
    """
    label = (raw or "").strip().lower()
    if not label:
        return OTHER_CATEGORY
    for cat in canonical:
        if cat.lower() == label:
            return cat
    for cat in canonical:
        name = cat.lower()
        if name in label or label in name:
            return cat
    return OTHER_CATEGORY


class CategoryService:
    def __init__(
        self,
        direct_debit_categories: list[str] | None = None,
        aliases: dict[str, list[str]] | None = None,
    ):
        self._dd_categories = direct_debit_categories or DIRECT_DEBIT_CATEGORIES
        self._aliases = aliases or CATEGORY_ALIASES

    def reconcile(self, raw: str | None) -> str:
        return reconcile_category(raw, self._dd_categories)

    def matches_filter(self, category: str | None, filter_name: str) -> bool:
        """True when a transaction's category falls under the selected filter.

        'All' matches everything; legacy labels ('Bills & Utilities',
        emoji-prefixed names) match their modern filter.
        """
        if not filter_name or filter_name == "All":
            return True
        if not category:
            return filter_name == OTHER_CATEGORY
        candidates = self._aliases.get(filter_name, [filter_name])
        return category in candidates or category.lower() == filter_name.lower()
