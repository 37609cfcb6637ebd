# ContentSync Default Configuration
# Full default configuration as Python dict and YAML generator

import copy
from typing import Any

import yaml

DEFAULT_CONFIG: dict[str, Any] = {
    "download_path": ".downloads/",
    "temp_path": "%DOWNLOAD_PATH%/.tmp/",
    "backup_path": "%DOWNLOAD_PATH%/.backups/",
    "backup_and_restore": True,
    "max_concurrent": 4,
    "max_timeout": 30000,
    "clear_old_files_on_start": False,
    "clear_old_files_on_success": True,
    "keep": "",
    "strip": "",
    "ignore_cache": False,
    "enable_if_modified_since_check": True,
    "enable_content_length_check": True,
    "abort_on_error": True,
    "ignore_image_transform_errors": True,
    "ignore_image_transform_cache": False,
    "force_clear_temp_files": True,
    "image_transforms": [],
    "content_transforms": {},
    "sources": [],
    "output": {
        "verbose": False,
        "colored": True,
    },
}

EXAMPLE_SOURCES: list[dict[str, Any]] = [
    {
        "id": "site",
        "type": "json",
        "files": {
            "settings": "https://example.com/api/settings.json",
        },
    },
    {
        "id": "articles",
        "type": "rest",
        "base_url": "https://example.com/api/",
        "queries": ["articles"],
        "limit": 100,
    },
]


def generate_default_config() -> str:
    """Generate default configuration as YAML string with comments."""
    header = """# ContentSync Configuration
#
# Each source is fetched into its own subdirectory of download_path.
# temp_path and backup_path support the %DOWNLOAD_PATH% and %TIMESTAMP% tokens.
#
# Source types:
#   - json: one JSON document per URL (files: {id: url})
#   - rest: offset/limit paginated JSON API (base_url + queries)
#
# Cache checks:
#   Existing media files are revalidated with a HEAD request. If both
#   enable_if_modified_since_check and enable_content_length_check are
#   false, existing files are always reused and never revalidated.

"""
    config = copy.deepcopy(DEFAULT_CONFIG)
    config["sources"] = copy.deepcopy(EXAMPLE_SOURCES)
    return header + yaml.dump(config, default_flow_style=False, sort_keys=False, allow_unicode=True)
