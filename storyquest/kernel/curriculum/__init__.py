"""
Curriculum loading - program rows to CurriculumTree.
"""

from storyquest.kernel.curriculum.loader import CurriculumLoader, assemble_tree

__all__ = ["CurriculumLoader", "assemble_tree"]
