"""civitdl: fetch models from the Civitai catalog into a web UI folder tree."""

__version__ = "0.3.0"
