from __future__ import annotations

import logging
import random
from collections import defaultdict
from collections.abc import Sequence
from typing import Protocol, TypeVar

_logger = logging.getLogger(__name__)


class _Identified(Protocol):
    @property
    def id(self) -> int: ...


T = TypeVar("T", bound=_Identified)


class CustomContentPicker:
    def __init__(self, *, allow_repeats: bool, rng: random.Random | None = None) -> None:
        """Pick custom questions or polls of a guild.

        Custom content has no persisted rotation state. With
        ``allow_repeats`` every pick is uniformly random. Without it, the
        ids shown to each guild are remembered in memory and only unseen
        items are picked until all of them have been shown once. The
        memory is lost when the bot restarts.
        """
        self.allow_repeats = allow_repeats
        self._rng = rng or random.Random()
        self._shown: defaultdict[tuple[str, str], set[int]] = defaultdict(set)

    def pick(self, kind: str, guild_id: str, items: Sequence[T]) -> T | None:
        """Pick one of ``items``, or return None if there are none.

        :param kind: The type of content, rotations are tracked separately
          for each kind
        :param guild_id: The guild the items belong to
        :param items: All items currently saved for the guild
        """
        if not items:
            return None
        if self.allow_repeats:
            return self._rng.choice(items)

        shown = self._shown[kind, guild_id]
        candidates = [item for item in items if item.id not in shown]
        if not candidates:
            _logger.debug("All %s of guild %s shown, starting a new rotation", kind, guild_id)
            shown.clear()
            candidates = list(items)

        item = self._rng.choice(candidates)
        shown.add(item.id)
        return item
