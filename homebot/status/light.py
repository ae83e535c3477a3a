"""
Ambient light level sampling.
Buffers lux readings pushed by the beacon scanner and reduces them to a status fragment.
"""

import logging
import math
from typing import List, Optional, Tuple


# Ordered (exclusive lower bound, emoji) buckets, brightest first
LIGHT_BUCKETS: Tuple[Tuple[int, str], ...] = (
    (2750, '☀️'),
    (2000, '🌤'),
    (1000, '⛅️'),
    (500, '☁️'),
    (100, '💡'),
    (10, '🕯'),
)
DARK_EMOJI = '👻'
ASLEEP_FRAGMENT = '💡💤 '


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from negative infinity."""
    return int(math.floor(value + 0.5))


def light_bucket(value: int) -> str:
    """Map a mean light value to its bucket emoji. Thresholds are strict."""
    for threshold, emoji in LIGHT_BUCKETS:
        if value > threshold:
            return emoji
    return DARK_EMOJI


class LightLevelSampler:
    """
    Accumulates instantaneous light readings between weather polls.

    The buffer is only cleared by drain_and_summarize(); it grows without
    bound until then.
    """

    def __init__(self, logger: Optional[logging.Logger] = None):
        self.logger = logger or logging.getLogger('homebot.light')
        self._samples: List[int] = []

    def record(self, sample: int):
        """Append one light sample."""
        self._samples.append(int(sample))

    def __len__(self) -> int:
        return len(self._samples)

    def drain_and_summarize(self) -> str:
        """
        Reduce all recorded samples to "<emoji> <mean> " and clear the buffer.

        Returns:
            str: Status fragment, or the asleep fragment when no sample arrived
        """
        samples, self._samples = self._samples, []

        if not samples:
            self.logger.debug("No light samples since last drain")
            return ASLEEP_FRAGMENT

        mean = round_half_up(sum(samples) / len(samples))
        self.logger.debug(f"Light mean {mean} from {len(samples)} samples")
        return f"{light_bucket(mean)} {mean} "
