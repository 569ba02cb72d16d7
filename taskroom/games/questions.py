from __future__ import annotations

import random
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

CHOICE_LABELS: Tuple[str, ...] = ("A", "B", "C", "D")


@dataclass(frozen=True)
class Question:
    prompt: str
    choices: Tuple[str, str, str, str]

    def lines(self) -> List[str]:
        return [self.prompt] + [f" {label}. {text}" for label, text in zip(CHOICE_LABELS, self.choices)]


QUESTION_BANK: Sequence[Question] = (
    Question("Pick a weekend plan:", ("Sleep in", "Hike a trail", "Binge a series", "Cook something new")),
    Question("Best pizza topping?", ("Pepperoni", "Mushroom", "Pineapple", "Just cheese")),
    Question("Your ideal superpower?", ("Flight", "Invisibility", "Teleportation", "Time freeze")),
    Question("Morning drink of choice?", ("Coffee", "Tea", "Juice", "Water")),
    Question("Dream vacation spot?", ("Beach", "Mountains", "Big city", "Countryside")),
    Question("Which pet would you adopt?", ("Dog", "Cat", "Parrot", "Turtle")),
    Question("Favourite season?", ("Spring", "Summer", "Autumn", "Winter")),
    Question("Go-to karaoke genre?", ("Pop", "Rock", "Ballad", "I only clap")),
    Question("Pick a snack for movie night:", ("Popcorn", "Chips", "Chocolate", "Fruit")),
    Question("How do you read a book?", ("Paper", "E-reader", "Audiobook", "I watch the movie")),
    Question("Best time to get work done?", ("Early morning", "Afternoon", "Late night", "Right before the deadline")),
    Question("Choose a board game:", ("Chess", "Monopoly", "Catan", "Uno")),
    Question("Which dessert wins?", ("Ice cream", "Cake", "Mango sticky rice", "Cookies")),
    Question("How do you travel across town?", ("Bike", "Bus", "Car", "Walk")),
    Question("Pick a movie genre for tonight:", ("Comedy", "Horror", "Sci-fi", "Romance")),
    Question("Your desk is usually:", ("Spotless", "Organised chaos", "Buried", "What desk?")),
    Question("Favourite way to celebrate a win?", ("Team dinner", "Quiet night in", "Shopping", "Start the next task")),
    Question("Choose a breakfast:", ("Rice porridge", "Toast", "Cereal", "Skip it")),
    Question("Which app do you open first each day?", ("Chat", "Email", "News", "Music")),
    Question("Pick a rainy-day activity:", ("Nap", "Games", "Baking", "Reading")),
)


class QuestionDeck:
    """Draws questions without replacement, reshuffling once the bank runs dry."""

    def __init__(self, bank: Sequence[Question] = QUESTION_BANK, rng: Optional[random.Random] = None) -> None:
        if not bank:
            raise ValueError("Question bank cannot be empty")
        self._bank = list(bank)
        self._rng = rng or random.Random()
        self._pending: List[Question] = []

    @property
    def remaining(self) -> int:
        return len(self._pending)

    def draw(self) -> Question:
        if not self._pending:
            self._pending = list(self._bank)
            self._rng.shuffle(self._pending)
        return self._pending.pop()


def parse_choice(value: object) -> Optional[str]:
    """Normalise ``a``/``A``/``1`` style input to a choice label."""
    text = str(value or "").strip().upper().rstrip(".)")
    if text in CHOICE_LABELS:
        return text
    if text.isdigit():
        idx = int(text) - 1
        if 0 <= idx < len(CHOICE_LABELS):
            return CHOICE_LABELS[idx]
    return None
