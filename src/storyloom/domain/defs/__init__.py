"""Domain definition exports."""

from .edge_def import EdgeDef, EdgeKind
from .graph_def import StoryGraphDef
from .pool_def import PoolDef
from .rule_def import ConditionDef, EffectDef
from .scene_def import ChoiceOptionDef, SceneNodeDef
from .variable_def import VariableDef

__all__ = [
    "ChoiceOptionDef",
    "ConditionDef",
    "EdgeDef",
    "EdgeKind",
    "EffectDef",
    "PoolDef",
    "SceneNodeDef",
    "StoryGraphDef",
    "VariableDef",
]
