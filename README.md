# tlvwrite

`tlvwrite` encodes values in the Matter TLV (tag-length-value) format. For
each element it picks the smallest integer width and chooses the tag control
from the tag and the enclosing container. It writes either into a fixed
`bytearray` or into a chain of buffers that a backing store supplies.

## Installation

```
pip install tlvwrite
```

## Writing into a buffer

```python
from tlvwrite.writer import TlvWriter
from tlvwrite.tags import anonymous_tag, context_tag
from tlvwrite.tlv_types import TlvType

buf = bytearray(32)
writer = TlvWriter()
writer.init(buf, len(buf))

outer = writer.start_container(anonymous_tag(), TlvType.STRUCTURE)
writer.put_uint(context_tag(1), 42)
writer.put_string(context_tag(2), "abcd")
writer.put_boolean(context_tag(3), True)
writer.end_container(outer)
writer.finalize()

encoded = bytes(buf[: writer.length_written])
```

`TlvWriter.init(buffer, max_len)` limits output to `max_len` bytes. If you
leave `max_len` out, the limit is the length of the buffer. A `max_len`
larger than the buffer raises `InvalidArgumentError`.

The element methods are:

- `put_uint(tag, value, width=None)` and `put_int(tag, value, width=None)`.
  These use the smallest width that holds the value. If you pass a `width`
  in bits (8, 16, 32 or 64), that width is used. A value that does not fit
  raises `InvalidArgumentError`.
- `put_boolean(tag, value)` and `put_null(tag)`.
- `put_bytes(tag, data)` and `put_string(tag, text)`. `put_string` encodes
  `text` as UTF-8.
- `put_string_format(tag, fmt, *args)`. This formats the string with
  `str.format`. If the result is longer than 32 UTF-8 bytes, it raises
  `NoMemoryError`.
- `put_pre_encoded_container(tag, container_type, data)`. This writes a
  container head followed by an already encoded body.
- `write_element_head(element_type, tag, len_or_val)` and
  `write_element_with_data(tlv_type, tag, data)`. These are the lower-level
  calls that the methods above build on.

Other members:

- `implicit_profile_id` is an attribute you can set. Profile tags whose
  profile matches it are written in the short implicit form.
- `container_type` is the type of the container currently being written.
- `length_written` is the number of bytes written at the current level.
- `reserve_buffer(size)` holds back `size` bytes of the remaining space. With
  a backing store, this works only if the store's
  `get_new_buffer_will_always_fail()` returns `True`.

## Tags

`tlvwrite.tags` builds `Tag` values, each a 32-bit profile id and a 32-bit
tag number:

- `anonymous_tag()`
- `context_tag(n)`, with `n` from 0 to 255. Context tags are allowed only
  inside a structure or a list.
- `common_tag(n)`
- `profile_tag(profile_id, n)`
- `profile_tag_vendor_id(vendor_id, profile_num, n)`

Out-of-range numbers raise `InvalidArgumentError`.

Where a tag may appear depends on the enclosing container:

- Anonymous tags are rejected inside a structure.
- Profile tags are rejected inside an array.
- Breaking these rules raises `InvalidTagError`.

`tlvwrite.tlv_types` defines the enums `TlvType`, `ElementType`, `TagControl`
and `FieldSize`. It also defines the helpers `is_container`,
`element_type_for_container` and `field_size_of`.

## Containers

There are two ways to write a container:

- `start_container` and `end_container` keep using the same writer.
  `start_container(tag, container_type)` returns the outer container type.
  Pass that value to `end_container`.
- `open_container(tag, container_type, container_writer)` and
  `close_container(container_writer)` hand the container body to a second
  `TlvWriter`. Until the container is closed, the parent writer raises
  `ContainerOpenError` on any write.

In both cases one byte is set aside for the end-of-container marker, so a
container can always be closed.

## Backing stores

To stream output in chunks, subclass `tlvwrite.writer.BackingStore`:

```python
from tlvwrite.writer import BackingStore, TlvWriter
from tlvwrite.tags import common_tag

class ChunkStore(BackingStore):
    def __init__(self):
        self.chunks = []

    def on_init_writer(self, writer):
        return bytearray(4)

    def finalize_buffer(self, writer, data):
        self.chunks.append(data)

    def get_new_buffer(self, writer):
        return bytearray(4)

store = ChunkStore()
writer = TlvWriter()
writer.init_backing_store(store, 64)
writer.put_uint(common_tag(1), 7)
writer.put_string(common_tag(2), "hello")
writer.finalize()
encoded = b"".join(store.chunks)
```

When the current buffer fills up, the writer passes its bytes to
`finalize_buffer` and asks `get_new_buffer` for the next one. `finalize()`
passes the last, partly filled buffer to the store.

Errors from the store:

- If `on_init_writer` returns `None`, the writer raises `InternalError`.
- If `get_new_buffer` returns no buffer or an empty one, the writer raises
  `NoMemoryError`.

## Errors

Every failure raises a subclass of `tlvwrite.errors.TlvError`:

- `IncorrectStateError`
- `ContainerOpenError`
- `BufferTooSmallError`
- `InvalidTagError`
- `WrongTypeError`
- `InvalidArgumentError`
- `MessageTooLongError`
- `NoMemoryError`
- `InternalError`

## What it does not do

The package only encodes. It has no TLV reader, so it cannot decode TLV data
or copy elements out of existing TLV data. It also has no methods for writing
floating-point values.