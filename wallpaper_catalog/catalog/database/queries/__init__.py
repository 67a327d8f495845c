# Re-export public API from query modules
# Pure atomic database queries only - no business logic or orchestration

from wallpaper_catalog.catalog.database.queries.wallpaper import (
    SORT_COLUMNS,
    delete_wallpaper_by_id,
    get_wallpaper_by_id,
    get_wallpaper_tag_ids,
    increment_download_count,
    insert_wallpaper,
    list_wallpapers_page,
)

from wallpaper_catalog.catalog.database.queries.owners import (
    add_wallpaper_to_owner,
    get_owner_by_external_id,
    get_owner_by_id,
    get_owner_posted_wallpaper_ids,
    remove_wallpaper_from_owner,
    upsert_owner,
)

from wallpaper_catalog.catalog.database.queries.tags import (
    add_wallpaper_to_tags,
    get_tag_by_title,
    get_tag_ids_by_titles,
    get_tag_wallpaper_ids,
    insert_tag,
    list_tag_titles,
    remove_wallpaper_from_tags,
    tag_exists_by_title,
)

__all__ = [
    # wallpaper.py
    "SORT_COLUMNS",
    "delete_wallpaper_by_id",
    "get_wallpaper_by_id",
    "get_wallpaper_tag_ids",
    "increment_download_count",
    "insert_wallpaper",
    "list_wallpapers_page",
    # owners.py
    "add_wallpaper_to_owner",
    "get_owner_by_external_id",
    "get_owner_by_id",
    "get_owner_posted_wallpaper_ids",
    "remove_wallpaper_from_owner",
    "upsert_owner",
    # tags.py
    "add_wallpaper_to_tags",
    "get_tag_by_title",
    "get_tag_ids_by_titles",
    "get_tag_wallpaper_ids",
    "insert_tag",
    "list_tag_titles",
    "remove_wallpaper_from_tags",
    "tag_exists_by_title",
]
