# components/progress_bar.py
from models.common import round_half_up

from .base import Component

SIZE_CLASSES = {
    "sm": "h-1",
    "md": "h-2",
    "lg": "h-3",
}


def clamp_percentage(value: float) -> float:
    return min(max(value, 0), 100)


class ProgressBar(Component):
    template_name = "components/progress_bar.html"

    def __init__(self, value: float, size: str = "md", show_label: bool = True, class_name: str = ""):
        self.value = clamp_percentage(value)
        self.size = size
        self.show_label = show_label
        self.class_name = class_name

    @property
    def label(self) -> str:
        return f"{round_half_up(self.value)}%"

    def context(self) -> dict:
        return {
            "value": self.value,
            "label": self.label,
            "show_label": self.show_label,
            "size_class": SIZE_CLASSES.get(self.size, SIZE_CLASSES["md"]),
            "class_name": self.class_name,
        }
