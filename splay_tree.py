# splay_tree.py

import enum
import logging

logger = logging.getLogger(__name__)


class SplayCaseError(RuntimeError):
    """Raised when splay case dispatch meets keys that are not totally ordered."""


class Node:
    """
    Represents a node in the splay tree.
    Each node has a key and left and right children. There is no parent link:
    the top-down splay never walks upwards.
    """
    def __init__(self, key):
        self.key = key
        self.left = None
        self.right = None

    def __repr__(self):
        child_keys = [getattr(c, 'key', None) for c in (self.left, self.right)]
        return f"<{self.__class__.__qualname__} ({self.key!r}) {child_keys}>"

    def insert_left_most(self, subtree):
        """Grafts subtree as the left child of the deepest left descendant."""
        if subtree is None:
            return
        current = self
        while current.left is not None:
            current = current.left
        current.left = subtree

    def insert_right_most(self, subtree):
        """Grafts subtree as the right child of the deepest right descendant."""
        if subtree is None:
            return
        current = self
        while current.right is not None:
            current = current.right
        current.right = subtree

    def left_most_key(self):
        current = self
        while current.left is not None:
            current = current.left
        return current.key

    def right_most_key(self):
        current = self
        while current.right is not None:
            current = current.right
        return current.key

    def bstinsert(self, node):
        """
        Plain binary search tree insertion below self.
        A node whose key equals one met on the way down is spliced in as that
        node's left child and takes over its former left subtree, so equal
        keys pile up to the left.
        """
        key = node.key
        current = self
        while True:
            if current.key == key:
                node.left = current.left
                current.left = node
                return
            elif current.key > key:
                if current.left is None:
                    current.left = node
                    return
                current = current.left
            else:
                if current.right is None:
                    current.right = node
                    return
                current = current.right

    def count_nodes(self):
        """Returns the number of nodes in the subtree rooted at self."""
        count = 0
        stack = [self]
        while stack:
            node = stack.pop()
            count += 1
            if node.left is not None:
                stack.append(node.left)
            if node.right is not None:
                stack.append(node.right)
        return count


def nodes_equal(a, b):
    """Deep structural equality over key and both subtrees."""
    pending = [(a, b)]
    while pending:
        x, y = pending.pop()
        if x is None or y is None:
            if x is not y:
                return False
            continue
        if x.key != y.key:
            return False
        pending.append((x.left, y.left))
        pending.append((x.right, y.right))
    return True


class SplayCase(enum.Enum):
    MERGE = 'merge'
    LEFT_ROTATE = 'left_rotate'
    RIGHT_ROTATE = 'right_rotate'
    ZIG_ZIG_LEFT = 'zig_zig_left'
    ZIG_ZIG_RIGHT = 'zig_zig_right'
    ZIG_ZAG_LEFT = 'zig_zag_left'
    ZIG_ZAG_RIGHT = 'zig_zag_right'


def splay_case(node, key):
    """
    Classifies the next top-down splay step for node and the target key.

    An absent child on the search path means the search ends at node, which
    is the MERGE transition. When the search ends at the child instead, a
    single rotation brings the child up and the next step merges. Keys that
    compare neither equal, less nor greater break the search path and raise
    SplayCaseError.
    """
    if node.key == key:
        return SplayCase.MERGE
    elif node.key < key:
        # heading for the right subtree
        child = node.right
        if child is None:
            return SplayCase.MERGE
        if child.key == key:
            return SplayCase.RIGHT_ROTATE
        elif child.key > key:
            if child.left is None:
                return SplayCase.RIGHT_ROTATE
            return SplayCase.ZIG_ZAG_RIGHT
        elif child.key < key:
            if child.right is None:
                return SplayCase.RIGHT_ROTATE
            return SplayCase.ZIG_ZIG_RIGHT
    elif node.key > key:
        # heading for the left subtree
        child = node.left
        if child is None:
            return SplayCase.MERGE
        if child.key == key:
            return SplayCase.LEFT_ROTATE
        elif child.key > key:
            if child.left is None:
                return SplayCase.LEFT_ROTATE
            return SplayCase.ZIG_ZIG_LEFT
        elif child.key < key:
            if child.right is None:
                return SplayCase.LEFT_ROTATE
            return SplayCase.ZIG_ZAG_LEFT
    logger.error(f"No splay case for key {key!r} at node {node!r}")
    raise SplayCaseError(f"keys {node.key!r} and {key!r} are not totally ordered")


class SplayTree:
    """
    Top-down splay tree.
    Every insert, delete and explicit splay brings the target key, or the last
    node on its search path, to the root. Duplicate keys are allowed.
    """
    def __init__(self):
        self.root = None
        self.total_rotations = 0  # Non-merge splay steps, for workload metrics

    def __len__(self):
        if self.root is None:
            return 0
        return self.root.count_nodes()

    def __bool__(self):
        return self.root is not None

    def __iter__(self):
        return self.drain()

    def __contains__(self, key):
        return self.depth_of(key) is not None

    @property
    def root_key(self):
        return None if self.root is None else self.root.key

    def insert(self, node):
        """Inserts node and splays its key to the root."""
        if self.root is None:
            self.root = node
            return

        self.root.bstinsert(node)
        # Splays by key value; with duplicates the root may be another node of equal key.
        self.splay(node.key)

    def insert_key(self, key):
        """Builds a node for key, inserts it and returns it."""
        node = Node(key)
        self.insert(node)
        return node

    def find(self, key):
        """Splays key and returns the root node if it holds key, else None."""
        self.splay(key)
        if self.root is not None and self.root.key == key:
            return self.root
        return None

    def delete(self, key):
        """Deletes one node with the given key, if any."""
        if self.root is None:
            return

        self.splay(key)
        if self.root.key != key:
            logger.debug(f"Key {key!r} not found, nothing to delete")
            return

        deleted = self.root
        left_tree, right_tree = deleted.left, deleted.right
        deleted.left = deleted.right = None

        if left_tree is None:
            self.root = right_tree
            return

        # Splaying the maximum of the left tree leaves its root without a right child.
        self.root = left_tree
        self.splay(left_tree.right_most_key())
        self.root.insert_right_most(right_tree)

    def splay(self, key):
        """
        Top-down splay of key: a single pass down the search path that
        collects nodes smaller than key into a left tree and larger ones into
        a right tree, then assembles left tree, final node and right tree.

        header.right holds the left tree and header.left the right tree;
        left_tail and right_tail are where the next nodes get linked.
        """
        if self.root is None:
            return

        header = Node(None)
        left_tail = right_tail = header
        node = self.root

        while True:
            case = splay_case(node, key)

            if case is SplayCase.MERGE:
                #  L     X    R            X
                #   \   / \  /    =>     /   \
                #    a b   c d          a     d
                #                        \   /
                #                         b c
                left_tail.right = node.left
                right_tail.left = node.right
                node.left = header.right
                node.right = header.left
                self.root = node
                return

            self.total_rotations += 1

            if case is SplayCase.LEFT_ROTATE:
                #  L     Y    R         L     X       R
                #       / \      =>          / \     /
                #      X   c                a   b   Y
                #     / \                            \
                #    a   b                            c
                child = node.left
                node.left = None
                right_tail.left = node
                right_tail = node
                node = child

            elif case is SplayCase.RIGHT_ROTATE:
                #  L     Y    R         L       X       R
                #       / \      =>      \     / \
                #      c   X              Y   a   b
                #         / \            /
                #        a   b          c
                child = node.right
                node.right = None
                left_tail.right = node
                left_tail = node
                node = child

            elif case is SplayCase.ZIG_ZIG_LEFT:
                #  L     Z    R          L     X       R
                #       / \      =>           / \     /
                #      Y   d                 a   b   Y
                #     / \                             \
                #    X   c                             Z
                #                                     / \
                #                                    c   d
                child = node.left
                grandchild = child.left
                node.left = child.right
                child.left = None
                child.right = node
                right_tail.left = child
                right_tail = child
                node = grandchild

            elif case is SplayCase.ZIG_ZIG_RIGHT:
                #  L     Z    R          L      X       R
                #       / \      =>       \    / \
                #      d   Y               Y  a   b
                #         / \             /
                #        c   X           Z
                #                       / \
                #                      d   c
                child = node.right
                grandchild = child.right
                node.right = child.left
                child.right = None
                child.left = node
                left_tail.right = child
                left_tail = child
                node = grandchild

            elif case is SplayCase.ZIG_ZAG_LEFT:
                #  L     Z    R          L       X       R
                #       / \      =>       \     / \     /
                #      Y   d               Y   a   b   Z
                #     / \                 /             \
                #    c   X               c               d
                child = node.left
                grandchild = child.right
                node.left = None
                child.right = None
                left_tail.right = child
                left_tail = child
                right_tail.left = node
                right_tail = node
                node = grandchild

            elif case is SplayCase.ZIG_ZAG_RIGHT:
                #  L     Z    R          L       X       R
                #       / \      =>       \     / \     /
                #      c   Y               Z   a   b   Y
                #         / \             /             \
                #        X   d           c               d
                child = node.right
                grandchild = child.left
                node.right = None
                child.left = None
                right_tail.left = child
                right_tail = child
                left_tail.right = node
                left_tail = node
                node = grandchild

    def pop_left_most(self):
        """
        Removes and returns the node with the smallest key, without splaying.
        Its right subtree takes its place.
        """
        if self.root is None:
            return None

        parent = None
        current = self.root
        while current.left is not None:
            parent = current
            current = current.left

        if parent is None:  # current is root
            self.root = current.right
        else:
            parent.left = current.right
        current.right = None
        return current

    def drain(self):
        """Yields every node in ascending key order, emptying the tree."""
        while self.root is not None:
            yield self.pop_left_most()

    def depth_of(self, key):
        """Returns the depth of the first node holding key, without splaying."""
        depth = 0
        current = self.root
        while current is not None:
            if key == current.key:
                return depth
            elif key < current.key:
                current = current.left
            else:
                current = current.right
            depth += 1
        return None
