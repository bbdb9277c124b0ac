from collections import Counter
from typing import List, Tuple

from .config import FILTER_CONFIG, get_game
from .distribution import count_consecutive_runs


class CombinationFilter:
    """
    Structural filters that reject lopsided combinations.
    Thresholds scale with the game's pick count and number range.
    """

    def __init__(self, game_type, params=None):
        self.game = get_game(game_type)
        self.params = {**FILTER_CONFIG, **(params or {})}
        k, n = self.game.numbers_to_select, self.game.max_number

        # Min possible sum: sum(1..k); max possible sum: sum(n-k+1..n)
        min_possible = k * (k + 1) // 2
        max_possible = sum(range(n - k + 1, n + 1))
        buffer = int((max_possible - min_possible) * self.params['sum_buffer'])

        self.min_sum = min_possible + buffer
        self.max_sum = max_possible - buffer
        if self.min_sum >= self.max_sum:
            self.min_sum, self.max_sum = min_possible, max_possible

        self.max_per_decade = max(1, int(k * self.params['max_decade_share']))
        self.max_per_last_digit = max(1, int(k * self.params['max_last_digit_share']))

    def validate(self, numbers: List[int]) -> Tuple[bool, str]:
        """
        Validate a set of main numbers against the structural rules.
        Returns (is_valid, reason).
        """
        if not self._check_sum(numbers):
            return False, "Sum out of range"

        if not self._check_odd_even(numbers):
            return False, "All numbers share the same parity"

        if not self._check_consecutive(numbers):
            return False, "Too many consecutive numbers"

        if not self._check_decade_distribution(numbers):
            return False, "Unbalanced decade distribution"

        if not self._check_last_digit(numbers):
            return False, "Too many same last digits"

        return True, "OK"

    def _check_sum(self, nums: List[int]) -> bool:
        return self.min_sum <= sum(nums) <= self.max_sum

    def _check_odd_even(self, nums: List[int]) -> bool:
        odds = sum(1 for n in nums if n % 2 != 0)
        return 0 < odds < len(nums)

    def _check_consecutive(self, nums: List[int]) -> bool:
        return count_consecutive_runs(nums, self.params['max_run_length'] + 1) == 0

    def _check_decade_distribution(self, nums: List[int]) -> bool:
        # Decades: 1-10, 11-20, ...
        decades = Counter((n - 1) // 10 for n in nums)
        return max(decades.values()) <= self.max_per_decade

    def _check_last_digit(self, nums: List[int]) -> bool:
        digits = Counter(n % 10 for n in nums)
        return max(digits.values()) <= self.max_per_last_digit
