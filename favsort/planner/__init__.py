from .grouping import build_chunks, group_by_creator
from .naming import build_target_folder_name, parse_folder_names

__all__ = [
    "build_chunks",
    "build_target_folder_name",
    "group_by_creator",
    "parse_folder_names",
]
