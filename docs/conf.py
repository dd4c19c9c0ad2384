project = "fabrik"
author = "fabrik contributors"

extensions: list[str] = [
    "sphinx.ext.autodoc",
    "sphinx_copybutton",
]

root_doc = "index"
source_suffix: dict[str, str] = {
    ".rst": "restructuredtext",
}

exclude_patterns: list[str] = ["_build"]

html_theme = "furo"
html_title = "fabrik"

autodoc_member_order = "bysource"
