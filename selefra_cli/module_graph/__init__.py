"""Module declaration graph.

Collects ``modules:`` declarations across a workspace, resolves their
references (local paths and remote packages), detects reference cycles and
flattens nested documents into one list of qualified module names.

The resolving stages live in ``resolver``, ``discovery`` and ``loader``;
import them from there.
"""

from .cycles import detect_cycles
from .cycles import find_cycle
from .errors import CircularReferenceError
from .errors import DuplicateModuleNameError
from .errors import FetchFailedError
from .errors import MalformedDocumentError
from .errors import ModuleResolutionError
from .errors import ReferenceMalformedError
from .errors import ReferenceNotFoundError
from .errors import UnauthenticatedError
from .flattener import flatten_graph
from .models import DeclarationOrigin
from .models import MergedModule
from .models import ModuleDeclaration
from .models import ModuleDocument
from .models import Reference
from .models import ReferenceKind
from .models import ResolvedDeclaration
from .models import ResolvedDocument
from .models import ResolvedGraph
from .models import ResolvedReference

__all__ = [
    "CircularReferenceError",
    "DeclarationOrigin",
    "DuplicateModuleNameError",
    "FetchFailedError",
    "MalformedDocumentError",
    "MergedModule",
    "ModuleDeclaration",
    "ModuleDocument",
    "ModuleResolutionError",
    "Reference",
    "ReferenceKind",
    "ReferenceMalformedError",
    "ReferenceNotFoundError",
    "ResolvedDeclaration",
    "ResolvedDocument",
    "ResolvedGraph",
    "ResolvedReference",
    "UnauthenticatedError",
    "detect_cycles",
    "find_cycle",
    "flatten_graph",
]
