"""PluginKit: compile one canonical agent tree into per-editor plugins."""

__version__ = "0.3.0"
__author__ = "PluginKit Contributors"
__description__ = "Agent definitions, skills and workflow commands"
__plugin_author__ = "PluginKit Contributors"

from .compiler import CompileResult, PluginCompiler
from .config import load_target_config, parse_target_config
from .models import GeneratedFile, JsonMergePayload, TargetConfig
from .source import EmbeddedSource, FilesystemSource, TemplateSource
from .writer import ArtifactWriter

__all__ = [
    "ArtifactWriter",
    "CompileResult",
    "EmbeddedSource",
    "FilesystemSource",
    "GeneratedFile",
    "JsonMergePayload",
    "PluginCompiler",
    "TargetConfig",
    "TemplateSource",
    "load_target_config",
    "parse_target_config",
]
