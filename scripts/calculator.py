"""Example agent: arithmetic on a running total.

    kotto build scripts/calculator.py
    kotto run scripts/calculator.py --replay scripts/calculator_replay.json --trace
    kotto run scripts/calculator.py --options '{"start": 10}' --replay scripts/calculator_replay.json
"""

from kotto import Agent, Feedback, description, use


@description("Add 2 and 3 to the total, multiply it by 4 and exit with the result.")
class Calculator(Agent):
    def __init__(self, start: float = 0) -> None:
        self.total = start

    @use
    def add(self, value: float) -> float:
        """Add value to the total and return the new total."""
        self.total += value
        return self.total

    @use
    def multiply(self, value: float) -> float:
        """Multiply the total by value and return the new total."""
        self.total *= value
        return self.total

    @use
    def divide(self, value: float) -> float:
        """Divide the total by value and return the new total. `value` must not be zero."""
        if value == 0:
            raise Feedback("cannot divide by zero")
        self.total /= value
        return self.total

    @use
    def total_so_far(self) -> float:
        """The current total."""
        return self.total


def create_agent(start: float = 0) -> Calculator:
    return Calculator(start)
