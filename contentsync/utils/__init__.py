# ContentSync Utilities Module
# Helper functions for path handling and URL scraping

from contentsync.utils.paths import (
    DOWNLOAD_PATH_TOKEN,
    TIMESTAMP_TOKEN,
    add_filename_suffix,
    atomic_write,
    copy_tree,
    detokenize_path,
    ensure_dir,
    expand_path,
    get_date_string,
    join_within,
    matches_any_pattern,
    matches_pattern,
    remove_dir_if_empty,
    remove_files_from_dir,
    safe_delete,
    save_json,
)
from contentsync.utils.urls import (
    MEDIA_PATTERN,
    find_urls,
    local_path_from_url,
)

__all__ = [
    # Paths
    "DOWNLOAD_PATH_TOKEN",
    "TIMESTAMP_TOKEN",
    "expand_path",
    "ensure_dir",
    "safe_delete",
    "atomic_write",
    "join_within",
    "save_json",
    "copy_tree",
    "matches_pattern",
    "matches_any_pattern",
    "remove_files_from_dir",
    "remove_dir_if_empty",
    "add_filename_suffix",
    "get_date_string",
    "detokenize_path",
    # URLs
    "MEDIA_PATTERN",
    "local_path_from_url",
    "find_urls",
]
