# Expose the hierarchy helpers directly from the organizations.services package.

from .hierarchy import (
    ROOT_PATH,
    OrganizationTree,
    normalize_tree_path,
    split_tree_path,
    resolve_descendants,
)
from .registry import (
    register_headquarters,
    register_partner,
    get_partner_paths,
)

__all__ = [
    'ROOT_PATH',
    'OrganizationTree',
    'normalize_tree_path',
    'split_tree_path',
    'resolve_descendants',
    'register_headquarters',
    'register_partner',
    'get_partner_paths',
]
