from typing import TypeVar

T = TypeVar('T')


def _replace_tuple(v: tuple[T, ...], i: int, d: T) -> tuple[T, ...]:
  """Return a new tuple where index `i` is replaced with `d`."""
  if not (0 <= i < len(v)):
    raise IndexError("index out of range")
  return v[:i] + (d,) + v[i+1:]


def _remove_at(v: tuple[T, ...], i: int) -> tuple[T, ...]:
  """Return a new tuple without the element at index `i`."""
  if not (0 <= i < len(v)):
    raise IndexError("index out of range")
  return v[:i] + v[i+1:]


def _push_bounded(v: tuple[T, ...], d: T, capacity: int) -> tuple[T, ...]:
  """Append `d` and drop the oldest entries so at most `capacity` remain."""
  if capacity <= 0:
    return ()
  return (v + (d,))[-capacity:]
