"""
Demo command set built on the argline core.

Commands
- ping: answers "pong".
- gather-info: probes a host in a background task that writes a JSON report
  to a numbered buffer, waits for the task, then drains and decodes the buffer.
- scan <host>: the addresses a host resolves to.
- scan-all: the addresses of every host known to the current machine.

Buffers (Port / Ports)
- Small bounded FIFO queues addressed by number, used to hand data from a
  spawned task back to the command that started it. Reading an empty buffer
  yields NULL_PORT_DATA instead of raising.

The host probe and the host listing are injectable (build(probe=..., hosts=...))
so the commands can run without name resolution.
"""
import asyncio
import json
import logging
import socket
import time
from collections import deque

from .commands import command
from .flags import flag
from .parsers import parser

logger = logging.getLogger(__name__)

NULL_PORT_DATA = "NULL PORT DATA"
PORT_CAPACITY = 50
POLL_INTERVAL = 0.1


class Port:
    """
    Bounded FIFO buffer of strings.
    """

    def __init__(self, number, /, capacity=PORT_CAPACITY):
        self.number = number
        self.capacity = capacity
        self._data = deque()

    def __repr__(self):
        return f"port(number={self.number!r}, size={len(self._data)}, capacity={self.capacity})"

    def empty(self):
        return not self._data

    def full(self):
        return len(self._data) >= self.capacity

    def try_write(self, data, /):
        """
        Append `data` unless the buffer is full. Returns whether it was written.
        """
        if self.full():
            return False
        self._data.append(data)
        return True

    def read(self):
        """
        Pop the oldest entry, or NULL_PORT_DATA when empty.
        """
        return self._data.popleft() if self._data else NULL_PORT_DATA

    def clear(self):
        self._data.clear()


class Ports:
    """
    Registry of numbered buffers, created on first use.
    """

    def __init__(self, capacity=PORT_CAPACITY):
        self.capacity = capacity
        self._ports = {}

    def get(self, number, /):
        if isinstance(number, bool) or not isinstance(number, int | str):
            raise TypeError("port number must be an integer")
        try:
            number = int(number)
        except ValueError:
            raise ValueError(f"invalid port number {number!r}") from None
        if number < 1:
            raise ValueError(f"invalid port number {number!r}")
        if number not in self._ports:
            self._ports[number] = Port(number, self.capacity)
        return self._ports[number]


async def resolve_host(host, /):
    """
    Default probe: resolve `host` and report basic facts about it.

    Raises
    - LookupError: the host does not resolve.
    """
    started = time.perf_counter()
    try:
        infos = await asyncio.to_thread(socket.getaddrinfo, host, None)
    except socket.gaierror as error:
        raise LookupError(f"server {host!r} does not exist") from error
    elapsed = time.perf_counter() - started

    addresses = sorted({info[4][0] for info in infos})
    families = sorted({socket.AddressFamily(info[0]).name for info in infos})
    return {
        "host": host,
        "addresses": addresses,
        "families": families,
        "resolveTime": round(elapsed * 1000, 3),
    }


async def analyze(host, port, /, probe=resolve_host):
    """
    Probe `host` and write the JSON report into `port`.

    Returns whether the report was written (False when the buffer is full).
    """
    report = await probe(host)
    written = port.try_write(json.dumps(report, indent=4))
    if written:
        logger.info("analyzed %s and wrote data to port %s", host, port.number)
    else:
        logger.warning("unable to write to port %s", port.number)
    return written


def drain(port, /):
    """
    Read every entry from `port`, decoding JSON where possible.

    Raises
    - RuntimeError: the null-data marker was read.
    """
    results = []
    while not port.empty():
        data = port.read()
        if data == NULL_PORT_DATA:
            raise RuntimeError("read invalid data from port")
        try:
            results.append(json.loads(data))
        except (TypeError, ValueError):
            results.append(data)
    return results


def local_hosts():
    """
    Default host listing: the names the current machine is reachable under.
    """
    return sorted({"localhost", socket.gethostname(), socket.getfqdn()} - {""})


def build(ports=None, probe=None, hosts=None):
    """
    Build the demo parser.

    Parameters
    - ports: Ports registry shared by the commands (a fresh one by default).
    - probe: async callable host -> report (resolve_host by default).
    - hosts: callable returning the host names scan-all covers (local_hosts by default).
    """
    ports = ports if ports is not None else Ports()
    probe = probe if probe is not None else resolve_host
    hosts = hosts if hosts is not None else local_hosts

    async def gather_info(params, flags):
        host = flags["--host"][0]
        port = ports.get(flags["--port"][0])
        # Only this run's report is drained.
        port.clear()

        task = asyncio.create_task(analyze(host, port, probe))
        while not task.done():
            await asyncio.sleep(POLL_INTERVAL)
        task.result()

        return drain(port)

    async def scan(params, flags):
        report = await probe(str(params[0]))
        return report["addresses"]

    async def scan_all(params, flags):
        reports = await asyncio.gather(*(probe(host) for host in hosts()))
        return {report["host"]: report["addresses"] for report in reports}

    return (
        parser("cli")
        .add_command(
            command("ping")
            .set_description("A test command")
            .set_expected_args(0)
            .set_handler(lambda params, flags: "pong")
        )
        .add_command(
            command("gather-info")
            .set_description("Gather info on a given host")
            .set_expected_args(2)
            .add_flag(
                flag("--host")
                .set_description("The hostname to connect to")
                .set_required(True)
                .set_expected_args(1)
            )
            .add_flag(
                flag("--port")
                .set_description("The port to read/write data on")
                .set_required(True)
                .set_expected_args(1)
            )
            .set_handler(gather_info)
        )
        .add_command(
            command("scan")
            .set_description("Scan a host")
            .set_expected_args(1)
            .add_arg_description("The host to scan.")
            .set_handler(scan)
        )
        .add_command(
            command("scan-all")
            .set_description("Scan all hosts connected to the current host")
            .set_expected_args(0)
            .set_handler(scan_all)
        )
        .build()
    )


__all__ = (
    "NULL_PORT_DATA",
    "Port",
    "Ports",
    "resolve_host",
    "analyze",
    "drain",
    "local_hosts",
    "build",
)
