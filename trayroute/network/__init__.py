"""
trayroute.network - Tray network construction

Node arena, face assignment, the segment network builder and the jump
connectivity augmenter.
"""

from .graph import NodeGraph
from .faces import resolve_face, assign_faces, propagate_branch_faces
from .builder import NetworkBuilder, NetworkResult, BuildStats, JunctionCluster
from .jumps import JumpAugmenter, JumpStats

__all__ = [
    'NodeGraph',
    'resolve_face',
    'assign_faces',
    'propagate_branch_faces',
    'NetworkBuilder',
    'NetworkResult',
    'BuildStats',
    'JunctionCluster',
    'JumpAugmenter',
    'JumpStats',
]
