
"""
Linked binary search tree nodes and in-order positions.

Children are owned through ordinary references. The parent link is a
weak reference: it is only used to climb the tree while iterating and
never keeps a detached subtree alive.
"""

import logging
import weakref
from abc import ABC, abstractmethod
from typing import Any, Callable, Iterator, List, Optional, Tuple

logger = logging.getLogger(__name__)


class Position(ABC):
    __slots__ = ()

    @abstractmethod
    def get_element(self):
        """Return the element stored at this position."""
        pass

    def __eq__(self, other):
        """Return True if other is a Position representing the same location."""
        raise NotImplementedError('must be implemented by subclass')

    def __ne__(self, other):
        """Return True if other does not represent the same location."""
        return not (self == other)


# ------------------ Nodes ------------------
class _Node:
    """Tree vertex owning its children and weakly referencing its parent."""
    __slots__ = '_key', '_value', '_left', '_right', '_parent', '__weakref__'

    def __init__(self, key, value=None, parent=None):
        self._key = key
        self._value = value
        self._left = None
        self._right = None
        self._parent = None
        self.set_parent(parent)

    def get_key(self): return self._key
    def get_value(self): return self._value
    def get_left(self): return self._left
    def get_right(self): return self._right
    def set_key(self, key): self._key = key
    def set_value(self, value): self._value = value
    def set_left(self, left): self._left = left
    def set_right(self, right): self._right = right

    def get_parent(self) -> Optional['_Node']:
        if self._parent is None:
            return None
        return self._parent()

    def set_parent(self, parent: Optional['_Node']) -> None:
        self._parent = None if parent is None else weakref.ref(parent)

    def has_left(self) -> bool: return self._left is not None
    def has_right(self) -> bool: return self._right is not None

    def is_leaf(self) -> bool:
        return self._left is None and self._right is None

    def mark_defunct(self) -> None:
        """Unlink the node from the tree; a defunct node is its own parent."""
        self._left = None
        self._right = None
        self.set_parent(self)

    def is_defunct(self) -> bool:
        return self.get_parent() is self

    def subtree_first(self) -> '_Node':
        """Return the node with the smallest key in this subtree."""
        walk = self
        while walk._left is not None:
            walk = walk._left
        return walk

    def subtree_last(self) -> '_Node':
        """Return the node with the largest key in this subtree."""
        walk = self
        while walk._right is not None:
            walk = walk._right
        return walk

    def successor(self) -> Optional['_Node']:
        """Return the in-order successor, or None past the largest key."""
        if self._right is not None:
            return self._right.subtree_first()
        walk = self
        parent = walk.get_parent()
        while parent is not None and walk is parent.get_right():
            walk = parent
            parent = walk.get_parent()
        return parent

    def __repr__(self):
        return f"_Node({self._key!r}, {self._value!r})"


def clone_subtree(node: Optional[_Node],
                  copy_item: Optional[Callable[[_Node], Tuple[Any, Any]]] = None) -> Optional[_Node]:
    """Return a copy of the subtree rooted at node, parent links included."""
    if node is None:
        return None
    if copy_item is None:
        copy_item = lambda n: (n.get_key(), n.get_value())

    clone_root = _Node(*copy_item(node))
    stack = [(node, clone_root)]
    while stack:
        source, target = stack.pop()
        left = source.get_left()
        if left is not None:
            copied = _Node(*copy_item(left), parent=target)
            target.set_left(copied)
            stack.append((left, copied))
        right = source.get_right()
        if right is not None:
            copied = _Node(*copy_item(right), parent=target)
            target.set_right(copied)
            stack.append((right, copied))
    return clone_root


def free_subtree(node: Optional[_Node]) -> int:
    """Unlink every node of the subtree, children before parents.

    Returns the number of nodes released.
    """
    if node is None:
        return 0
    order: List[_Node] = []
    stack = [node]
    while stack:
        walk = stack.pop()
        order.append(walk)
        if walk.has_left():
            stack.append(walk.get_left())
        if walk.has_right():
            stack.append(walk.get_right())
    for walk in reversed(order):
        walk.mark_defunct()
    logger.debug("Released %d nodes", len(order))
    return len(order)


def render_subtree(node: Optional[_Node]) -> Iterator[str]:
    """Generate one debug line per node in key order.

    Each line reads "<prefix>: <key>". The root has an empty prefix and a
    child's prefix is a space, its parent's prefix, then 0 (left) or 1 (right).
    """
    stack: List[Tuple[_Node, str]] = []
    walk, prefix = node, ""
    while stack or walk is not None:
        while walk is not None:
            stack.append((walk, prefix))
            walk, prefix = walk.get_left(), " " + prefix + "0"
        walk, prefix = stack.pop()
        yield f"{prefix}: {walk.get_key()}"
        walk, prefix = walk.get_right(), " " + prefix + "1"


# ------------------ Positions ------------------
class TreePosition(Position):
    """In-order position over a tree, or the end position when node is None.

    Calling key(), value() or advance() on the end position is a
    precondition violation and is not checked. A position does not keep
    its dictionary alive. Once the node it refers to is removed the
    position is no longer valid (see is_valid()) and using it raises
    RuntimeError.

    A position is also an iterator over the keys from itself to the end.
    """
    __slots__ = ('_node',)

    def __init__(self, node: Optional[_Node] = None):
        self._node = node

    def _validate(self) -> Optional[_Node]:
        """Return the referenced node, refusing nodes removed from the tree."""
        if self._node is not None and self._node.is_defunct():
            raise RuntimeError("Position no longer valid")
        return self._node

    def get_element(self):
        return self._validate().get_key()

    def key(self):
        """Return the key at this position."""
        return self._validate().get_key()

    def value(self):
        """Return the value stored with the key at this position."""
        return self._validate().get_value()

    def advance(self) -> 'TreePosition':
        """Move to the next key in ascending order and return self."""
        self._node = self._validate().successor()
        return self

    def is_end(self) -> bool:
        return self._node is None

    def is_valid(self) -> bool:
        """Return False once the referenced node has been removed from its tree."""
        return self._node is None or not self._node.is_defunct()

    def __eq__(self, other):
        if not isinstance(other, TreePosition):
            return NotImplemented
        return self._node is other._node

    def __ne__(self, other):
        result = self.__eq__(other)
        if result is NotImplemented:
            return result
        return not result

    def __iter__(self) -> 'TreePosition':
        return self

    def __next__(self):
        node = self._validate()
        if node is None:
            raise StopIteration
        key = node.get_key()
        self.advance()
        return key

    def __repr__(self):
        if self._node is None:
            return "TreePosition(end)"
        return f"TreePosition({self._node.get_key()!r})"
