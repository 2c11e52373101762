from ui.constants import (
    SEARCH_GROUP_FUZZY_TEXT,
    SEARCH_PRIVATE_EXACT_AMBIGUOUS_TEXT,
    SEARCH_PRIVATE_FUZZY_TEXT,
    UIStatus,
)
from services.resolver_service import Disposition, PHASE_EXACT


class SearchRenderer:
    """歧义结果的候选列表文本"""

    def render_ambiguous(self, disposition: Disposition, private: bool) -> str:
        candidates = disposition.candidates
        if not private:
            items = "\n".join(f"{UIStatus.DOT} {c.title}" for c in candidates)
            return SEARCH_GROUP_FUZZY_TEXT.format(items=items)

        if disposition.phase == PHASE_EXACT:
            items = "\n".join(f"{i}) {c.chat_display}" for i, c in enumerate(candidates, start=1))
            return SEARCH_PRIVATE_EXACT_AMBIGUOUS_TEXT.format(items=items)

        items = "\n".join(f"{UIStatus.DOT} [{c.chat_display}] {c.title}" for c in candidates)
        return SEARCH_PRIVATE_FUZZY_TEXT.format(items=items)
