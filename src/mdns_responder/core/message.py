"""
DNS Message Codec Module

This module implements the RFC 1035 wire format as used by multicast DNS:
- DNS header parsing/construction
- Question section handling
- Answer/Authority/Additional sections
- Transport annotations (address, IP family, port) carried alongside a message
"""

import logging
import socket
import struct
from dataclasses import dataclass, field
from enum import Enum, IntEnum
from typing import Dict, Iterator, List, Optional, Tuple, Union

logger = logging.getLogger(__name__)

# Upper bound on compression pointers followed while decoding one name
MAX_POINTER_JUMPS = 64


class DNSRecordType(IntEnum):
    """DNS Record Types"""

    A = 1
    NS = 2
    CNAME = 5
    PTR = 12
    TXT = 16
    AAAA = 28
    SRV = 33
    NSEC = 47
    ANY = 255


class DNSClass(IntEnum):
    """DNS Classes"""

    IN = 1
    ANY = 255


class IPProtocol(Enum):
    """IP family a message was received on or is destined for"""

    IPV4 = "IPv4"
    IPV6 = "IPv6"

    @property
    def family(self) -> int:
        return socket.AF_INET if self is IPProtocol.IPV4 else socket.AF_INET6


@dataclass
class DNSHeader:
    """DNS Message Header"""

    transaction_id: int
    flags: int
    question_count: int = 0
    answer_count: int = 0
    authority_count: int = 0
    additional_count: int = 0

    # Flag field components
    qr: bool = False  # Query/Response bit
    opcode: int = 0  # Operation code
    aa: bool = False  # Authoritative Answer
    tc: bool = False  # Truncation
    rd: bool = False  # Recursion Desired
    ra: bool = False  # Recursion Available
    z: int = 0  # Reserved (must be zero)
    rcode: int = 0  # Response code

    def __post_init__(self):
        """Update flags based on individual flag components"""
        self.flags = (
            (int(self.qr) << 15)
            | (self.opcode << 11)
            | (int(self.aa) << 10)
            | (int(self.tc) << 9)
            | (int(self.rd) << 8)
            | (int(self.ra) << 7)
            | (self.z << 4)
            | self.rcode
        )

    @classmethod
    def parse_flags(cls, flags: int) -> Dict[str, Union[bool, int]]:
        """Parse flags field into individual components"""
        return {
            "qr": bool(flags & 0x8000),
            "opcode": (flags >> 11) & 0x0F,
            "aa": bool(flags & 0x0400),
            "tc": bool(flags & 0x0200),
            "rd": bool(flags & 0x0100),
            "ra": bool(flags & 0x0080),
            "z": (flags >> 4) & 0x07,
            "rcode": flags & 0x0F,
        }

    def to_bytes(self) -> bytes:
        """Convert header to bytes"""
        return struct.pack(
            "!HHHHHH",
            self.transaction_id,
            self.flags,
            self.question_count,
            self.answer_count,
            self.authority_count,
            self.additional_count,
        )

    @classmethod
    def from_bytes(cls, data: bytes) -> "DNSHeader":
        """Parse header from bytes"""
        if len(data) < 12:
            raise ValueError("Invalid DNS header: too short")

        tid, flags, qcount, acount, authcount, addcount = struct.unpack(
            "!HHHHHH", data[:12]
        )

        return cls(
            transaction_id=tid,
            flags=flags,
            question_count=qcount,
            answer_count=acount,
            authority_count=authcount,
            additional_count=addcount,
            **cls.parse_flags(flags),
        )


def encode_name(name: str) -> bytes:
    """Encode domain name using DNS label encoding"""
    if name == ".":
        return b"\x00"

    labels = name.rstrip(".").split(".")
    result = b""
    for label in labels:
        label_bytes = label.encode("utf-8")
        if not label_bytes:
            raise ValueError(f"Empty label in name: {name}")
        if len(label_bytes) > 63:
            raise ValueError(f"Label too long: {label}")
        result += struct.pack("!B", len(label_bytes)) + label_bytes
    result += b"\x00"  # Root label
    return result


def decode_name(data: bytes, offset: int) -> Tuple[str, int]:
    """Decode DNS name with compression support"""
    labels = []
    original_offset = offset
    jumped = False
    jumps = 0

    while True:
        if offset >= len(data):
            raise ValueError("Invalid name: offset out of bounds")

        length = data[offset]

        if length == 0:
            # End of name
            offset += 1
            break
        elif (length & 0xC0) == 0xC0:
            # Name compression
            if offset + 1 >= len(data):
                raise ValueError("Invalid compression pointer")
            pointer = ((length & 0x3F) << 8) | data[offset + 1]
            if pointer >= offset:
                raise ValueError("Invalid compression pointer: not a back reference")
            jumps += 1
            if jumps > MAX_POINTER_JUMPS:
                raise ValueError("Invalid name: too many compression pointers")
            if not jumped:
                original_offset = offset + 2
                jumped = True
            offset = pointer
        elif length & 0xC0:
            raise ValueError(f"Unsupported label type: {length:#x}")
        else:
            # Regular label
            if offset + length + 1 > len(data):
                raise ValueError("Invalid label: length exceeds data")
            label = data[offset + 1 : offset + 1 + length].decode(
                "utf-8", errors="replace"
            )
            labels.append(label)
            offset += length + 1

    name = ".".join(labels) + "." if labels else "."
    return name, original_offset if jumped else offset


@dataclass
class DNSQuestion:
    """DNS Question Section"""

    name: str
    qtype: int
    qclass: int = DNSClass.IN

    def to_bytes(self) -> bytes:
        """Convert question to bytes"""
        return encode_name(self.name) + struct.pack("!HH", self.qtype, self.qclass)

    @classmethod
    def parse(cls, data: bytes, offset: int) -> Tuple["DNSQuestion", int]:
        """Parse question from bytes at given offset"""
        name, new_offset = decode_name(data, offset)
        if new_offset + 4 > len(data):
            raise ValueError("Invalid question: not enough data for type and class")

        qtype, qclass = struct.unpack("!HH", data[new_offset : new_offset + 4])
        return cls(name=name, qtype=qtype, qclass=qclass), new_offset + 4


@dataclass
class DNSResourceRecord:
    """DNS Resource Record"""

    name: str
    rtype: int
    rclass: int
    ttl: int
    rdata: bytes

    def to_bytes(self) -> bytes:
        """Convert resource record to bytes"""
        header = struct.pack(
            "!HHIH", self.rtype, self.rclass, self.ttl, len(self.rdata)
        )
        return encode_name(self.name) + header + self.rdata

    @classmethod
    def parse(cls, data: bytes, offset: int) -> Tuple["DNSResourceRecord", int]:
        """Parse resource record from bytes at given offset"""
        name, new_offset = decode_name(data, offset)

        if new_offset + 10 > len(data):
            raise ValueError("Invalid resource record: not enough data for header")

        rtype, rclass, ttl, rdlength = struct.unpack(
            "!HHIH", data[new_offset : new_offset + 10]
        )
        new_offset += 10

        if new_offset + rdlength > len(data):
            raise ValueError("Invalid resource record: not enough data for rdata")

        rdata = data[new_offset : new_offset + rdlength]

        return (
            cls(name=name, rtype=rtype, rclass=rclass, ttl=ttl, rdata=rdata),
            new_offset + rdlength,
        )

    def get_readable_rdata(self) -> str:
        """Get human-readable representation of rdata"""
        try:
            if self.rtype == DNSRecordType.A:
                return socket.inet_ntoa(self.rdata)
            elif self.rtype == DNSRecordType.AAAA:
                return socket.inet_ntop(socket.AF_INET6, self.rdata)
            else:
                return self.rdata.hex()
        except (OSError, ValueError) as e:
            logger.warning(f"Failed to parse rdata for type {self.rtype}: {e}")
            return self.rdata.hex()


@dataclass
class DNSMessage:
    """Complete DNS Message plus the transport it travelled on"""

    header: DNSHeader
    questions: List[DNSQuestion] = field(default_factory=list)
    answers: List[DNSResourceRecord] = field(default_factory=list)
    authority: List[DNSResourceRecord] = field(default_factory=list)
    additional: List[DNSResourceRecord] = field(default_factory=list)

    # Source address for received messages, destination for outgoing ones
    address: Optional[str] = None
    protocol: Optional[IPProtocol] = None
    port: int = 0

    def to_bytes(self) -> bytes:
        """Convert entire message to bytes"""
        # Update counts in header
        self.header.question_count = len(self.questions)
        self.header.answer_count = len(self.answers)
        self.header.authority_count = len(self.authority)
        self.header.additional_count = len(self.additional)

        result = self.header.to_bytes()

        for question in self.questions:
            result += question.to_bytes()

        for record in self.records():
            result += record.to_bytes()

        return result

    @classmethod
    def from_bytes(cls, data: bytes) -> "DNSMessage":
        """Parse complete DNS message from bytes"""
        if len(data) < 12:
            raise ValueError("Invalid DNS message: too short")

        header = DNSHeader.from_bytes(data)
        offset = 12

        # Parse questions
        questions = []
        for _ in range(header.question_count):
            question, offset = DNSQuestion.parse(data, offset)
            questions.append(question)

        # Parse answer, authority and additional records
        sections: List[List[DNSResourceRecord]] = []
        for count in (
            header.answer_count,
            header.authority_count,
            header.additional_count,
        ):
            records = []
            for _ in range(count):
                record, offset = DNSResourceRecord.parse(data, offset)
                records.append(record)
            sections.append(records)

        answers, authority, additional = sections
        return cls(
            header=header,
            questions=questions,
            answers=answers,
            authority=authority,
            additional=additional,
        )

    def records(self) -> Iterator[DNSResourceRecord]:
        """Iterate over answer, authority and additional records in order"""
        yield from self.answers
        yield from self.authority
        yield from self.additional

    def is_query(self) -> bool:
        """Check if this is a query message"""
        return not self.header.qr

    def is_response(self) -> bool:
        """Check if this is a response message"""
        return self.header.qr


def encode(message: DNSMessage) -> bytes:
    """Encode a message to its wire format"""
    return message.to_bytes()


def decode(data: bytes) -> Optional[DNSMessage]:
    """Decode a datagram, returning None if it is not a valid DNS message"""
    try:
        return DNSMessage.from_bytes(data)
    except (ValueError, struct.error) as e:
        logger.debug(f"Discarding malformed packet: {e}")
        return None


def create_query(
    name: str,
    qtype: int,
    address: str,
    protocol: IPProtocol,
    port: int,
) -> DNSMessage:
    """Create a single-question mDNS query addressed to address:port"""
    header = DNSHeader(transaction_id=0, flags=0, qr=False, rd=False)
    return DNSMessage(
        header=header,
        questions=[DNSQuestion(name=name, qtype=qtype, qclass=DNSClass.IN)],
        address=address,
        protocol=protocol,
        port=port,
    )


def create_a_record(name: str, ip: str, ttl: int = 120) -> DNSResourceRecord:
    """Create an A record"""
    rdata = socket.inet_aton(ip)
    return DNSResourceRecord(
        name=name, rtype=DNSRecordType.A, rclass=DNSClass.IN, ttl=ttl, rdata=rdata
    )


def create_aaaa_record(name: str, ip: str, ttl: int = 120) -> DNSResourceRecord:
    """Create an AAAA record"""
    rdata = socket.inet_pton(socket.AF_INET6, ip)
    return DNSResourceRecord(
        name=name, rtype=DNSRecordType.AAAA, rclass=DNSClass.IN, ttl=ttl, rdata=rdata
    )
