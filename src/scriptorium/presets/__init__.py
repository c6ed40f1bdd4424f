"""Publishing presets."""

from scriptorium.core.exceptions import ConfigurationError
from scriptorium.core.ports import Preset
from scriptorium.presets.jekyll import JekyllPreset

PRESETS: dict[str, type[Preset]] = {
    JekyllPreset.name: JekyllPreset,
}


def get_preset(name: str) -> Preset:
    try:
        preset_class = PRESETS[name]
    except KeyError as exc:
        msg = f"unknown preset '{name}'"
        raise ConfigurationError(msg) from exc
    return preset_class()


__all__ = ["PRESETS", "JekyllPreset", "get_preset"]
