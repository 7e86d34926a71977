# components/base.py
import os
from jinja2 import Environment, FileSystemLoader, select_autoescape
from markupsafe import Markup

TEMPLATE_DIR = os.path.join(os.path.dirname(os.path.abspath(__file__)), "templates")

env = Environment(
    loader=FileSystemLoader(TEMPLATE_DIR),
    autoescape=select_autoescape(["html"]),
    trim_blocks=True,
    lstrip_blocks=True,
)


def render(template_name: str, **context) -> str:
    return env.get_template(template_name).render(**context)


class Component:
    """A template plus the context it needs; str() renders it."""

    template_name = None

    def context(self) -> dict:
        raise NotImplementedError

    def render(self) -> Markup:
        return Markup(render(self.template_name, **self.context()))

    def __html__(self):
        return self.render()

    def __str__(self):
        return str(self.render())
