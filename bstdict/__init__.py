from bstdict.errors import KeyNotFound
from bstdict.indexing import Position, TreePosition
from bstdict.ordered_dict import OrderedDict

__all__ = ["KeyNotFound", "OrderedDict", "Position", "TreePosition"]
