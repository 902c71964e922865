"""End-to-end integration tests."""

from __future__ import annotations

import asyncio
import enum
import io
from dataclasses import dataclass
from ipaddress import IPv4Address
from typing import Any, Dict, List, Optional

import pytest
from pydantic import BaseModel, Field

from smallcbor import (
    AsyncReader,
    AsyncWriter,
    Capabilities,
    CapabilityError,
    Cursor,
    DecodeError,
    Decoder,
    EncodeError,
    Encoder,
    FramingError,
    Reader,
    Tokenizer,
    Writer,
    decode,
    decode_optional,
    encode,
    encode_into,
    encode_optional,
    encoded_len,
    is_nil,
)


class MissionPhase(enum.IntEnum):
    """Mission phase enum."""

    STARTUP = 1
    TRANSIT = 2
    SURVEY = 3
    RETURN = 4
    SHUTDOWN = 5


@dataclass
class Session:
    """Context threaded through encode and decode."""

    decoded: int = 0


class StatusReport(BaseModel):
    """Underwater vehicle status report."""

    vehicle_id: int = Field(ge=0, le=255, description="Vehicle ID")
    mission_phase: MissionPhase = Field(description="Current mission phase")
    depth_cm: int = Field(ge=0, le=10000, description="Depth in centimeters")
    battery_pct: int = Field(ge=0, le=100, description="Battery percentage")
    emergency: bool = Field(description="Emergency flag")
    relay: Optional[IPv4Address] = Field(default=None, description="Relay node")

    def encode_cbor(self, e: Encoder, ctx: Any = None) -> None:
        e.array(6)
        e.u8(self.vehicle_id).u8(self.mission_phase).u16(self.depth_cm)
        e.u8(self.battery_pct).bool(self.emergency)
        encode_optional(e, self.relay, ctx)

    @classmethod
    def decode_cbor(cls, d: Decoder, ctx: Any = None) -> StatusReport:
        p = d.position()
        if d.array() != 6:
            raise DecodeError.message("expected status report array").at(p)
        report = cls(
            vehicle_id=d.u8(),
            mission_phase=MissionPhase(d.u8()),
            depth_cm=d.u16(),
            battery_pct=d.u8(),
            emergency=d.bool(),
            relay=decode_optional(d, IPv4Address, ctx),
        )
        if isinstance(ctx, Session):
            ctx.decoded += 1
        return report


class Heading:
    """Compass heading with a sentinel for "unknown"."""

    UNKNOWN = 0xFFFF

    def __init__(self, degrees: int) -> None:
        self.degrees = degrees

    def is_nil(self) -> bool:
        return self.degrees == self.UNKNOWN

    @classmethod
    def nil(cls) -> Heading:
        return cls(cls.UNKNOWN)

    def encode_cbor(self, e: Encoder, ctx: Any = None) -> None:
        e.u16(self.degrees)

    @classmethod
    def decode_cbor(cls, d: Decoder, ctx: Any = None) -> Heading:
        return cls(d.u16())


@pytest.fixture
def status() -> StatusReport:
    return StatusReport(
        vehicle_id=42,
        mission_phase=MissionPhase.SURVEY,
        depth_cm=2500,
        battery_pct=87,
        emergency=False,
    )


class TestEndToEndWorkflow:
    """Test complete end-to-end workflows."""

    def test_status_report_workflow(self, status: StatusReport) -> None:
        """Test encode, inspect and decode of a status report."""
        # 1. Encode
        data = encode(status)
        assert len(data) == encoded_len(status)

        # 2. Inspect without decoding
        rendered = " ".join(str(t) for t in Tokenizer(data))
        assert rendered == "A[6] 42 3 2500 87 false null"

        # 3. Decode
        session = Session()
        decoded = decode(data, StatusReport, session)
        assert decoded == status
        assert session.decoded == 1

    def test_relay_address(self, status: StatusReport) -> None:
        """Test an optional field that is present."""
        relayed = status.model_copy(update={"relay": IPv4Address("10.0.0.7")})

        assert decode(encode(relayed), StatusReport) == relayed

    def test_reports_over_stream(self, status: StatusReport) -> None:
        """Test a batch of reports framed over a stream."""
        reports = [
            status.model_copy(update={"depth_cm": depth}) for depth in (0, 500, 10000)
        ]
        stream = io.BytesIO()
        writer = Writer(stream)
        for report in reports:
            writer.write(report)
        stream.seek(0)

        session = Session()
        reader = Reader(stream)
        received: List[StatusReport] = []
        while (report := reader.read(StatusReport, session)) is not None:
            received.append(report)

        assert received == reports
        assert session.decoded == 3

    def test_corrupted_report(self) -> None:
        """Test a corrupted payload surfaces as a framing error."""
        stream = io.BytesIO()
        Writer(stream).write([1, 2])
        stream.seek(0)

        with pytest.raises(FramingError) as exc_info:
            Reader(stream).read(StatusReport)
        assert isinstance(exc_info.value.cause, DecodeError)

    def test_nil_contract(self) -> None:
        """Test optional values through the nil contract."""
        e = Encoder()
        encode_optional(e, Heading(90))
        encode_optional(e, Heading.nil())
        encode_optional(e, None)
        data = bytes(e.writer())

        assert data == b"\x18\x5a\xf6\xf6"
        d = Decoder(data)
        assert decode_optional(d, Heading).degrees == 90
        assert is_nil(decode_optional(d, Heading))
        assert decode_optional(d, Heading).degrees == Heading.UNKNOWN

    def test_generic_document(self) -> None:
        """Test a nested document with typed and generic parts."""
        doc: Dict[str, Any] = {
            "vehicles": [1, 2, 3],
            "mission": {"name": "survey-7", "legs": [[0, 0], [100, 50]]},
        }
        data = encode(doc)

        assert decode(data) == doc
        d = Decoder(data)
        assert d.map() == 2
        assert d.str() == "vehicles"
        assert d.decode(List[int]) == [1, 2, 3]
        d.skip()
        d.skip()
        assert d.position() == len(data)


class TestFixedProfile:
    """Test operation without dynamic allocation."""

    def test_fixed_buffer_workflow(self, status: StatusReport, fixed_caps: Capabilities) -> None:
        """Test encoding into a fixed buffer and decoding field by field."""
        buffer = bytearray(32)
        view = encode_into(status, buffer, capabilities=fixed_caps)

        d = Decoder(view, fixed_caps)
        assert d.array() == 6
        assert d.u8() == 42
        d.skip()
        assert d.u16() == 2500
        d.set_position(0)
        assert d.decode(StatusReport) == status

    def test_buffer_too_small(self, status: StatusReport) -> None:
        """Test a buffer too small for the report."""
        cursor = Cursor(4)

        with pytest.raises(EncodeError):
            Encoder(cursor).encode(status)
        assert cursor.position() <= 4

    def test_generic_containers_disabled(self, fixed_caps: Capabilities) -> None:
        """Test generic containers need alloc."""
        with pytest.raises(CapabilityError):
            decode(encode([1, 2]), capabilities=fixed_caps)

    def test_no_stream_io(self, fixed_caps: Capabilities) -> None:
        """Test frame I/O needs std."""
        with pytest.raises(CapabilityError):
            Writer(io.BytesIO(), fixed_caps)


class TestAsyncWorkflow:
    """Test framing over asyncio streams."""

    def test_async_exchange(self, status: StatusReport, memory_writer: type) -> None:
        """Test reports written by one side and read by the other."""
        sink = memory_writer()

        async def run() -> List[StatusReport]:
            writer = AsyncWriter(sink)
            await writer.write(status)
            await writer.write(status.model_copy(update={"emergency": True}))
            await writer.close()

            stream = asyncio.StreamReader()
            stream.feed_data(bytes(sink.data))
            stream.feed_eof()
            reader = AsyncReader(stream)
            received = []
            while (report := await reader.read(StatusReport)) is not None:
                received.append(report)
            return received

        received = asyncio.run(run())

        assert [r.emergency for r in received] == [False, True]
        assert received[0] == status
