"""
Offline distance matrix generation.

Module Structure:
- matrix_generator.py: Simplify, dispatch, assemble, save
- matrix_worker.py: Joblib worker computing forward row blocks
"""

from geoclue.generator.matrix_generator import (
    assemble_matrix,
    count_forward_pairs,
    generate_and_save,
    generate_distance_matrix,
    get_effective_worker_count,
    should_use_parallel,
    simplify_regions,
    split_rows,
)
from geoclue.generator.matrix_worker import (
    deserialize_geometry,
    serialize_geometry,
    worker_compute_rows,
)

__all__ = [
    "assemble_matrix",
    "count_forward_pairs",
    "generate_and_save",
    "generate_distance_matrix",
    "get_effective_worker_count",
    "should_use_parallel",
    "simplify_regions",
    "split_rows",
    "deserialize_geometry",
    "serialize_geometry",
    "worker_compute_rows",
]
