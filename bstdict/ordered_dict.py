import copy
import logging
from typing import Any, Callable, Generic, Iterable, Iterator, Optional, Protocol, Tuple, TypeVar

from bstdict.errors import KeyNotFound
from bstdict.indexing import TreePosition, _Node, clone_subtree, free_subtree, render_subtree

logger = logging.getLogger(__name__)


class _Comparable(Protocol):
    """Protocol for keys ordered by < and compared by ==."""

    def __lt__(self, other: Any) -> bool:
        ...


K = TypeVar("K", bound=_Comparable)
V = TypeVar("V")

_MISSING = object()


class OrderedDict(Generic[K, V]):
    """Dictionary kept as an unbalanced binary search tree.

    Keys are ordered with ``<`` and identified with ``==``; iteration is in
    ascending key order. No rebalancing is done, so the depth of the tree
    (and the cost of every operation) follows the insertion order.

    Example:
        >>> d = OrderedDict([(5, "e"), (3, "c"), (8, "h")])
        >>> list(d)
        [3, 5, 8]
    """

    def __init__(self, source: Any = None,
                 default_factory: Optional[Callable[[], V]] = None) -> None:
        """Create an empty dictionary, or fill it from source.

        Args:
            source: Another OrderedDict (copied node for node), a mapping, or
                an iterable of (key, value) pairs added in order with add().
            default_factory: Called without arguments to build the value of
                keys inserted by get(). Values default to None without it.
        """
        self._root: Optional[_Node] = None
        self._size: int = 0
        self._default_factory = default_factory

        if isinstance(source, OrderedDict):
            if default_factory is None:
                self._default_factory = source._default_factory
            self.assign(source)
        elif source is not None:
            pairs = source.items() if hasattr(source, "items") else source
            for key, value in pairs:
                self.add(key, value)

    # ------------------ Accessors ------------------
    def __len__(self) -> int:
        return self._size

    @property
    def default_factory(self) -> Optional[Callable[[], V]]:
        return self._default_factory

    def _find_position(self, key: K) -> Tuple[Optional[_Node], Optional[_Node]]:
        """Return the node holding key (or None) and the last node visited above it."""
        walk = self._root
        parent = None
        while walk is not None:
            if walk.get_key() == key:
                return walk, parent
            parent = walk
            if key < walk.get_key():
                walk = walk.get_left()
            else:
                walk = walk.get_right()
        return None, parent

    def _attach(self, parent: Optional[_Node], key: K, value: V) -> _Node:
        """Hang a new node under parent on the side key belongs to."""
        if parent is None:
            self._root = _Node(key, value)
            logger.debug("Created root %r", key)
            self._size += 1
            return self._root

        node = _Node(key, value, parent)
        if key < parent.get_key():
            parent.set_left(node)
        else:
            parent.set_right(node)
        self._size += 1
        return node

    # ------------------ Membership & insertion ------------------
    def has(self, key: K) -> bool:
        """Return True if key is currently in the dictionary."""
        node, _ = self._find_position(key)
        return node is not None

    def __contains__(self, key: K) -> bool:
        return self.has(key)

    def add(self, key: K, value: V) -> None:
        """Insert key with value.

        Adding a key that is already present does nothing; in particular the
        stored value is NOT replaced. Use set() to overwrite a value.
        """
        node, parent = self._find_position(key)
        if node is None:
            self._attach(parent, key, value)

    def set(self, key: K, value: V) -> None:
        """Insert key with value, replacing the value if key is present."""
        node, parent = self._find_position(key)
        if node is None:
            self._attach(parent, key, value)
        else:
            node.set_value(value)

    def __setitem__(self, key: K, value: V) -> None:
        self.set(key, value)

    def find(self, key: K) -> Optional[V]:
        """Return the value for key, or None if absent. Never inserts.

        A key stored with a None value (what get() inserts without a
        default_factory) also gives None; use has() or ``in`` to test
        membership.
        """
        node, _ = self._find_position(key)
        if node is None:
            return None
        return node.get_value()

    def get_or_insert_default(self, key: K) -> V:
        """Return the value for key, inserting a default value first if absent."""
        node, parent = self._find_position(key)
        if node is None:
            value = self._default_factory() if self._default_factory is not None else None
            node = self._attach(parent, key, value)
        return node.get_value()

    def get(self, key: K) -> V:
        """Lookup-or-create access to the value stored with key.

        A missing key is inserted at its ordered position with a default
        value (see default_factory), so calling get() on an absent key
        changes the dictionary. Use lookup() or find() to read without
        inserting.
        """
        return self.get_or_insert_default(key)

    def lookup(self, key: K) -> V:
        """Return the value stored with key.

        Raises:
            KeyNotFound: If key is not in the dictionary. Nothing is inserted.
        """
        node, _ = self._find_position(key)
        if node is None:
            raise KeyNotFound(key)
        return node.get_value()

    def __getitem__(self, key: K) -> V:
        return self.lookup(key)

    # ------------------ Deletion ------------------
    def remove(self, key: K) -> None:
        """Remove key from the dictionary; removing an absent key is a no-op."""
        node, _ = self._find_position(key)
        if node is None:
            return
        self._remove_node(node)

    def __delitem__(self, key: K) -> None:
        node, _ = self._find_position(key)
        if node is None:
            raise KeyNotFound(key)
        self._remove_node(node)

    def pop(self, key: K, default: Any = _MISSING) -> V:
        """Remove key and return its value, or default if key is absent.

        Raises:
            KeyNotFound: If key is absent and no default is given.
        """
        node, _ = self._find_position(key)
        if node is None:
            if default is _MISSING:
                raise KeyNotFound(key)
            return default
        value = node.get_value()
        self._remove_node(node)
        return value

    def _remove_node(self, node: _Node) -> None:
        """Remove node while keeping the search order intact.

        A node with children takes over the entry of its in-order neighbour
        (largest key on the left if there is a left child, smallest key on
        the right otherwise); the neighbour is removed the same way until the
        node to drop is a leaf, which is then unlinked from its parent.
        """
        while not node.is_leaf():
            if node.has_left():
                donor = node.get_left().subtree_last()
            else:
                donor = node.get_right().subtree_first()
            node.set_key(donor.get_key())
            node.set_value(donor.get_value())
            node = donor
        self._detach_leaf(node)

    def _detach_leaf(self, leaf: _Node) -> None:
        parent = leaf.get_parent()
        if parent is None:
            self._root = None
        elif parent.get_left() is leaf:
            parent.set_left(None)
        else:
            parent.set_right(None)
        logger.debug("Detached leaf %r", leaf.get_key())
        leaf.mark_defunct()
        self._size -= 1

    def clear(self) -> None:
        """Remove every entry."""
        root, self._root = self._root, None
        self._size = 0
        free_subtree(root)

    # ------------------ Iteration ------------------
    def begin(self, key: Any = _MISSING) -> TreePosition:
        """Return the position of the smallest key, or of key when one is given.

        Returns the end position when the dictionary is empty or key is absent.
        """
        if key is not _MISSING:
            node, _ = self._find_position(key)
            return TreePosition(node)
        if self._root is None:
            return self.end()
        return TreePosition(self._root.subtree_first())

    def end(self) -> TreePosition:
        """Return the position past the largest key."""
        return TreePosition(None)

    def __iter__(self) -> Iterator[K]:
        """Generate the keys in ascending order."""
        return iter(self.begin())

    def keys(self) -> Iterator[K]:
        return iter(self)

    def values(self) -> Iterable[V]:
        """Generate the values in ascending key order."""
        position = self.begin()
        while not position.is_end():
            yield position.value()
            position.advance()

    def items(self) -> Iterable[Tuple[K, V]]:
        """Generate (key, value) pairs in ascending key order."""
        position = self.begin()
        while not position.is_end():
            yield position.key(), position.value()
            position.advance()

    # ------------------ Copy, move & assignment ------------------
    def assign(self, other: "OrderedDict[K, V]") -> "OrderedDict[K, V]":
        """Replace the contents with a copy of other's tree."""
        if other is self:
            return self
        self.clear()
        self._root = clone_subtree(other._root)
        self._size = other._size
        logger.debug("Copied %d nodes", self._size)
        return self

    def copy(self) -> "OrderedDict[K, V]":
        """Return a copy with its own nodes; keys and values are shared."""
        return type(self)(self)

    def __copy__(self) -> "OrderedDict[K, V]":
        return self.copy()

    def __deepcopy__(self, memo) -> "OrderedDict[K, V]":
        result = type(self)(default_factory=self._default_factory)
        memo[id(self)] = result
        result._root = clone_subtree(
            self._root,
            lambda n: (copy.deepcopy(n.get_key(), memo), copy.deepcopy(n.get_value(), memo)),
        )
        result._size = self._size
        return result

    def move_from(self, other: "OrderedDict[K, V]") -> "OrderedDict[K, V]":
        """Take over other's tree without copying it.

        The trees are exchanged, so other is left holding what this
        dictionary held before (nothing, for a fresh dictionary).
        """
        self._root, other._root = other._root, self._root
        self._size, other._size = other._size, self._size
        logger.debug("Moved tree of %d nodes", self._size)
        return self

    @classmethod
    def moved(cls, other: "OrderedDict[K, V]") -> "OrderedDict[K, V]":
        """Build a dictionary that takes over other's tree, leaving other empty."""
        return cls(default_factory=other._default_factory).move_from(other)

    # ------------------ Representation ------------------
    def dump(self) -> str:
        """Return the debug rendering of the tree, one line per node."""
        return "\n".join(render_subtree(self._root))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, OrderedDict):
            return NotImplemented
        if len(self) != len(other):
            return False
        return list(self.items()) == list(other.items())

    def __repr__(self) -> str:
        body = ", ".join(f"{key!r}: {value!r}" for key, value in self.items())
        return f"{type(self).__name__}({{{body}}})"
