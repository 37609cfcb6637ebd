# ContentSync Plugins Module
# Hook driver and built-in content transforms

from contentsync.plugins.driver import HookContext, HookEvent, Plugin, PluginDriver, PluginError
from contentsync.plugins.transforms import (
    apply_transform,
    markdown_to_html,
    md_to_html,
    plugins_from_config,
    sanity_to_html,
    sanity_to_markdown,
    sanity_to_plain,
    transform_plugin,
)

__all__ = [
    # Driver
    "HookContext",
    "HookEvent",
    "Plugin",
    "PluginDriver",
    "PluginError",
    # Transforms
    "apply_transform",
    "markdown_to_html",
    "transform_plugin",
    "md_to_html",
    "sanity_to_plain",
    "sanity_to_markdown",
    "sanity_to_html",
    "plugins_from_config",
]
