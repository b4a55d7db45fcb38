"""zapgen Template package: parsed templates, the renderer and output fragments.

Re-exports the public symbols so ``from zapgen.template import Template``
works.
"""

from zapgen.template.core import Template
from zapgen.template.fragment import Fragment, Slot
from zapgen.template.renderer import HelperOptions, Renderer

__all__ = [
    "Fragment",
    "HelperOptions",
    "Renderer",
    "Slot",
    "Template",
]
