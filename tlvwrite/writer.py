"""Streaming TLV encoder writing into a fixed buffer or a chain of buffers."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Optional, Union

from .errors import (
    BufferTooSmallError,
    ContainerOpenError,
    IncorrectStateError,
    InternalError,
    InvalidArgumentError,
    InvalidTagError,
    MessageTooLongError,
    NoMemoryError,
    WrongTypeError,
)
from .tags import (
    COMMON_PROFILE_ID,
    CONTEXT_TAG_MAX_NUM,
    PROFILE_ID_NOT_SPECIFIED,
    Tag,
    anonymous_tag,
)
from .tlv_types import (
    TYPE_SIZE_MASK,
    ElementType,
    FieldSize,
    TagControl,
    TlvType,
    element_type_for_container,
    field_size_of,
    is_container,
)

WritableBuffer = Union[bytearray, memoryview]

_END_OF_CONTAINER_MARKER_SIZE = 1
_MAX_FORMATTED_STRING_BYTES = 32

_U8_MAX = 0xFF
_U16_MAX = 0xFFFF
_U32_MAX = 0xFFFF_FFFF
_U64_MAX = 0xFFFF_FFFF_FFFF_FFFF

_UINT_TYPES = {
    8: ElementType.UINT8,
    16: ElementType.UINT16,
    32: ElementType.UINT32,
    64: ElementType.UINT64,
}
_INT_TYPES = {
    8: ElementType.INT8,
    16: ElementType.INT16,
    32: ElementType.INT32,
    64: ElementType.INT64,
}


class BackingStore(ABC):
    """Supplies buffers to a writer and receives them once they are full."""

    @abstractmethod
    def on_init_writer(self, writer: "TlvWriter") -> Optional[WritableBuffer]:
        """Return the first writable buffer for the writer."""

    @abstractmethod
    def finalize_buffer(self, writer: "TlvWriter", data: bytes) -> None:
        """Accept the bytes written into the current buffer."""

    @abstractmethod
    def get_new_buffer(self, writer: "TlvWriter") -> Optional[WritableBuffer]:
        """Return the next writable buffer for the writer."""

    def get_new_buffer_will_always_fail(self) -> bool:
        """Whether asking for a new buffer can never succeed."""
        return False


@dataclass
class _WriterState:
    implicit_profile_id: int
    backing_store: Optional[BackingStore]
    buffer: Optional[WritableBuffer]
    write_pos: int
    remaining_len: int
    len_written: int
    max_len: int
    container_type: TlvType
    initialized: bool
    container_open: bool
    close_container_reserved: bool


def _check_range(value: int, low: int, high: int) -> None:
    if not low <= value <= high:
        raise InvalidArgumentError(f"value {value!r} is outside {low}..{high}")


class TlvWriter:
    """Encodes TLV elements into a buffer, optionally backed by a store."""

    def __init__(self) -> None:
        self.implicit_profile_id = PROFILE_ID_NOT_SPECIFIED
        self._backing_store: Optional[BackingStore] = None
        self._buffer: Optional[WritableBuffer] = None
        self._write_pos = 0
        self._remaining_len = 0
        self._len_written = 0
        self._max_len = 0
        self._reserved_size = 0
        self._container_type = TlvType.NOT_SPECIFIED
        self._initialized = False
        self._container_open = False
        self._close_container_reserved = True

    # ------------------------------------------------------------------ setup

    def init(self, buffer: Optional[WritableBuffer], max_len: Optional[int] = None) -> None:
        """Prepare the writer to encode into ``buffer``, at most ``max_len`` bytes."""
        if max_len is None:
            max_len = 0 if buffer is None else len(buffer)
        if max_len < 0:
            raise InvalidArgumentError(f"negative maximum length {max_len}")
        max_len = min(max_len, _U32_MAX)
        if buffer is not None and max_len > len(buffer):
            raise InvalidArgumentError(
                f"maximum length {max_len} exceeds buffer size {len(buffer)}"
            )
        self._initialized = False
        self._backing_store = None
        self._buffer = buffer
        self._write_pos = 0
        self._remaining_len = max_len if buffer is not None else 0
        self._len_written = 0
        self._max_len = max_len
        self._container_type = TlvType.NOT_SPECIFIED
        self._reserved_size = 0
        self.implicit_profile_id = PROFILE_ID_NOT_SPECIFIED
        self._container_open = False
        self._close_container_reserved = True
        self._initialized = True

    def init_backing_store(self, backing_store: BackingStore, max_len: int) -> None:
        """Prepare the writer to encode into buffers supplied by ``backing_store``."""
        self.init(None, max_len)
        self._initialized = False
        self._backing_store = backing_store
        self._buffer = None
        self._remaining_len = 0
        buffer = backing_store.on_init_writer(self)
        if buffer is None:
            raise InternalError("backing store supplied no buffer")
        self._buffer = buffer
        self._remaining_len = len(buffer)
        self._write_pos = 0
        self._initialized = True

    def is_initialized(self) -> bool:
        """Whether the writer has been set up with a buffer or store."""
        return self._initialized

    def is_container_open(self) -> bool:
        """Whether a container writer opened from this one is still active."""
        return self._container_open

    @property
    def container_type(self) -> TlvType:
        """Type of the container the writer is currently writing into."""
        return self._container_type

    @property
    def length_written(self) -> int:
        """Number of bytes written at the current container level."""
        return self._len_written

    def finalize(self) -> None:
        """Hand the last partly filled buffer to the backing store."""
        self._require_initialized()
        if self._container_open:
            raise ContainerOpenError()
        if self._backing_store is not None:
            self._backing_store.finalize_buffer(self, self._written_bytes())

    def reserve_buffer(self, size: int) -> None:
        """Hold back ``size`` bytes of the remaining space."""
        self._require_initialized()
        if size < 0 or self._remaining_len < size:
            raise IncorrectStateError(f"cannot reserve {size} bytes")
        if (
            self._backing_store is not None
            and not self._backing_store.get_new_buffer_will_always_fail()
        ):
            raise IncorrectStateError("reservation needs a store that never grows")
        self._reserved_size += size
        self._remaining_len -= size

    # -------------------------------------------------------------- elements

    def put_boolean(self, tag: Tag, value: bool) -> None:
        """Write a boolean element."""
        element_type = ElementType.BOOLEAN_TRUE if value else ElementType.BOOLEAN_FALSE
        self.write_element_head(element_type, tag, 0)

    def put_uint(self, tag: Tag, value: int, width: Optional[int] = None) -> None:
        """Write an unsigned integer, in the smallest size or in ``width`` bits."""
        if width is None:
            _check_range(value, 0, _U64_MAX)
            if value <= _U8_MAX:
                element_type = ElementType.UINT8
            elif value <= _U16_MAX:
                element_type = ElementType.UINT16
            elif value <= _U32_MAX:
                element_type = ElementType.UINT32
            else:
                element_type = ElementType.UINT64
        else:
            if width not in _UINT_TYPES:
                raise InvalidArgumentError(f"unsupported integer width {width}")
            _check_range(value, 0, (1 << width) - 1)
            element_type = _UINT_TYPES[width]
        self.write_element_head(element_type, tag, value)

    def put_int(self, tag: Tag, value: int, width: Optional[int] = None) -> None:
        """Write a signed integer, in the smallest size or in ``width`` bits."""
        if width is None:
            _check_range(value, -(1 << 63), (1 << 63) - 1)
            for bits in (8, 16, 32, 64):
                if -(1 << (bits - 1)) <= value < (1 << (bits - 1)):
                    element_type = _INT_TYPES[bits]
                    break
        else:
            if width not in _INT_TYPES:
                raise InvalidArgumentError(f"unsupported integer width {width}")
            _check_range(value, -(1 << (width - 1)), (1 << (width - 1)) - 1)
            element_type = _INT_TYPES[width]
        self.write_element_head(element_type, tag, value & _U64_MAX)

    def put_bytes(self, tag: Tag, data: bytes) -> None:
        """Write a byte-string element."""
        if len(data) > _U32_MAX:
            raise MessageTooLongError()
        self.write_element_with_data(TlvType.BYTE_STRING, tag, bytes(data))

    def put_string(self, tag: Tag, text: str) -> None:
        """Write a UTF-8 string element."""
        self.write_element_with_data(TlvType.UTF8_STRING, tag, text.encode("utf-8"))

    def put_string_format(self, tag: Tag, fmt: str, *args: Any) -> None:
        """Write a UTF-8 string built with ``str.format``, at most 32 bytes long."""
        text = fmt.format(*args)
        if len(text.encode("utf-8")) > _MAX_FORMATTED_STRING_BYTES:
            raise NoMemoryError("formatted string is too long")
        self.put_string(tag, text)

    def put_null(self, tag: Tag) -> None:
        """Write a null element."""
        self.write_element_head(ElementType.NULL, tag, 0)

    # ------------------------------------------------------------ containers

    def open_container(
        self, tag: Tag, container_type: TlvType, container_writer: "TlvWriter"
    ) -> None:
        """Start a container whose contents are written through ``container_writer``."""
        self._require_initialized()
        if not is_container(container_type):
            raise WrongTypeError(f"{container_type!r} is not a container type")
        self._reserve_end_marker(BufferTooSmallError)
        self._write_container_head(tag, container_type)

        container_writer._load_state(
            _WriterState(
                implicit_profile_id=self.implicit_profile_id,
                backing_store=self._backing_store,
                buffer=self._buffer,
                write_pos=self._write_pos,
                remaining_len=self._remaining_len,
                len_written=0,
                max_len=self._max_len - self._len_written,
                container_type=container_type,
                initialized=True,
                container_open=False,
                close_container_reserved=self._close_container_reserved,
            )
        )
        self._container_open = True

    def close_container(self, container_writer: "TlvWriter") -> None:
        """Finish a container opened with :meth:`open_container`."""
        self._require_initialized()
        state = container_writer._export_state()
        if not is_container(state.container_type):
            raise IncorrectStateError("writer is not inside a container")
        if state.container_open:
            raise ContainerOpenError()

        self._backing_store = state.backing_store
        self._buffer = state.buffer
        self._write_pos = state.write_pos
        self._remaining_len = state.remaining_len
        self._len_written = state.len_written
        if self._close_container_reserved:
            self._max_len += _END_OF_CONTAINER_MARKER_SIZE
        self._container_open = False

        container_writer.init(None, 0)
        self.write_element_head(ElementType.END_OF_CONTAINER, anonymous_tag(), 0)

    def start_container(self, tag: Tag, container_type: TlvType) -> TlvType:
        """Enter a container in place; return the outer container type."""
        self._require_initialized()
        if not is_container(container_type):
            raise IncorrectStateError(f"{container_type!r} is not a container type")
        self._reserve_end_marker(IncorrectStateError)
        self._write_container_head(tag, container_type)

        outer_container_type = self._container_type
        self._container_type = container_type
        self._container_open = False
        return outer_container_type

    def end_container(self, outer_container_type: TlvType) -> None:
        """Leave a container entered with :meth:`start_container`."""
        self._require_initialized()
        if not is_container(self._container_type):
            raise IncorrectStateError("writer is not inside a container")
        self._container_type = outer_container_type
        if self._close_container_reserved:
            self._max_len += _END_OF_CONTAINER_MARKER_SIZE
        self.write_element_head(ElementType.END_OF_CONTAINER, anonymous_tag(), 0)

    def put_pre_encoded_container(
        self, tag: Tag, container_type: TlvType, data: bytes
    ) -> None:
        """Write a container head followed by already encoded contents."""
        if not is_container(container_type):
            raise InvalidArgumentError(f"{container_type!r} is not a container type")
        self.write_element_head(element_type_for_container(container_type), tag, 0)
        self._write_data(bytes(data))

    # -------------------------------------------------------------- encoding

    def write_element_head(self, element_type: ElementType, tag: Tag, len_or_val: int) -> None:
        """Write the control byte, tag and value or length field of an element."""
        self._require_initialized()
        if self._container_open:
            raise ContainerOpenError()
        if element_type < 0:
            raise InvalidArgumentError(f"{element_type!r} cannot be encoded")

        head = bytearray()
        container = self._container_type
        tag_num = tag.tag_num

        if tag.is_special():
            if tag_num <= CONTEXT_TAG_MAX_NUM:
                if container not in (TlvType.STRUCTURE, TlvType.LIST):
                    raise InvalidTagError("context tag outside a structure or list")
                head.append(TagControl.CONTEXT_SPECIFIC | element_type)
                head.append(tag_num)
            else:
                if element_type != ElementType.END_OF_CONTAINER and container not in (
                    TlvType.NOT_SPECIFIED,
                    TlvType.ARRAY,
                    TlvType.LIST,
                ):
                    raise InvalidTagError("anonymous tag inside a structure")
                head.append(TagControl.ANONYMOUS | element_type)
        else:
            if container not in (TlvType.NOT_SPECIFIED, TlvType.STRUCTURE, TlvType.LIST):
                raise InvalidTagError("profile tag inside an array")
            short = tag_num <= _U16_MAX
            num_bytes = tag_num.to_bytes(2 if short else 4, "little")
            if tag.profile_id == COMMON_PROFILE_ID:
                control = (
                    TagControl.COMMON_PROFILE_2BYTES
                    if short
                    else TagControl.COMMON_PROFILE_4BYTES
                )
                head.append(control | element_type)
            elif tag.profile_id == self.implicit_profile_id:
                control = (
                    TagControl.IMPLICIT_PROFILE_2BYTES
                    if short
                    else TagControl.IMPLICIT_PROFILE_4BYTES
                )
                head.append(control | element_type)
            else:
                control = (
                    TagControl.FULLY_QUALIFIED_6BYTES
                    if short
                    else TagControl.FULLY_QUALIFIED_8BYTES
                )
                head.append(control | element_type)
                head += tag.vendor_id.to_bytes(2, "little")
                head += tag.profile_num.to_bytes(2, "little")
            head += num_bytes

        length_size = field_size_of(element_type).byte_count()
        if length_size:
            mask = (1 << (8 * length_size)) - 1
            head += (len_or_val & mask).to_bytes(length_size, "little")

        self._write_data(bytes(head))

    def write_element_with_data(self, tlv_type: TlvType, tag: Tag, data: bytes) -> None:
        """Write a string-like element: head with length, then the data."""
        self._require_initialized()
        if int(tlv_type) & TYPE_SIZE_MASK:
            raise InvalidArgumentError(f"{tlv_type!r} cannot carry data")
        data_len = len(data)
        if data_len <= _U8_MAX:
            size = FieldSize.ONE_BYTE
        elif data_len <= _U16_MAX:
            size = FieldSize.TWO_BYTE
        else:
            size = FieldSize.FOUR_BYTE
        self.write_element_head(ElementType(int(tlv_type) | int(size)), tag, data_len)
        self._write_data(bytes(data))

    # -------------------------------------------------------------- internals

    def _require_initialized(self) -> None:
        if not self._initialized:
            raise IncorrectStateError("writer is not initialized")

    def _reserve_end_marker(self, error: type) -> None:
        if self._close_container_reserved:
            if self._max_len < _END_OF_CONTAINER_MARKER_SIZE:
                raise error("no room for the end-of-container marker")
            self._max_len -= _END_OF_CONTAINER_MARKER_SIZE

    def _write_container_head(self, tag: Tag, container_type: TlvType) -> None:
        try:
            self.write_element_head(element_type_for_container(container_type), tag, 0)
        except Exception:
            if self._close_container_reserved:
                self._max_len += _END_OF_CONTAINER_MARKER_SIZE
            raise

    def _written_bytes(self) -> bytes:
        if self._buffer is None:
            return b""
        return bytes(self._buffer[: self._write_pos])

    def _next_buffer(self) -> None:
        store = self._backing_store
        if store is None:
            raise NoMemoryError()
        if self._write_pos <= 0 or self._write_pos >= _U32_MAX:
            raise IncorrectStateError("current buffer is in an unexpected state")
        store.finalize_buffer(self, self._written_bytes())
        buffer = store.get_new_buffer(self)
        if buffer is None or len(buffer) == 0:
            raise NoMemoryError()
        self._buffer = buffer
        self._write_pos = 0
        self._remaining_len = min(len(buffer), self._max_len - self._len_written)

    def _write_data(self, data: bytes) -> None:
        self._require_initialized()
        if self._len_written + len(data) > self._max_len:
            raise BufferTooSmallError()
        view = memoryview(data)
        while view:
            if self._remaining_len == 0:
                self._next_buffer()
            chunk = view[: self._remaining_len]
            count = len(chunk)
            assert self._buffer is not None
            self._buffer[self._write_pos : self._write_pos + count] = chunk
            self._write_pos += count
            self._remaining_len -= count
            self._len_written += count
            view = view[count:]

    def _export_state(self) -> _WriterState:
        return _WriterState(
            implicit_profile_id=self.implicit_profile_id,
            backing_store=self._backing_store,
            buffer=self._buffer,
            write_pos=self._write_pos,
            remaining_len=self._remaining_len,
            len_written=self._len_written,
            max_len=self._max_len,
            container_type=self._container_type,
            initialized=self._initialized,
            container_open=self._container_open,
            close_container_reserved=self._close_container_reserved,
        )

    def _load_state(self, state: _WriterState) -> None:
        self.implicit_profile_id = state.implicit_profile_id
        self._backing_store = state.backing_store
        self._buffer = state.buffer
        self._write_pos = state.write_pos
        self._remaining_len = state.remaining_len
        self._len_written = state.len_written
        self._max_len = state.max_len
        self._container_type = state.container_type
        self._initialized = state.initialized
        self._container_open = state.container_open
        self._close_container_reserved = state.close_container_reserved