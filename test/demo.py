"""
Demo command set tests (buffers, probe, commands).

Scope
- Validate Port FIFO semantics, capacity and the null-data marker.
- Validate the Ports registry and port-number validation.
- Validate resolve_host() with a patched resolver.
- Validate ping, gather-info, scan and scan-all end-to-end with an injected probe.
- Validate that the console entry point prints results instead of returning them.

Conventions
- Test method names follow CamelCase per project convention.
- No test performs real name resolution.
"""

from __future__ import annotations

import socket
import unittest
from unittest import IsolatedAsyncioTestCase, TestCase, mock

from argline.__main__ import main
from argline.demo import NULL_PORT_DATA, Port, Ports, analyze, build, drain, local_hosts, resolve_host


async def probe(host):
    return {"host": host, "addresses": ["10.0.0.1", "10.0.0.2"]}


class TestPort(TestCase):
    """Bounded FIFO buffer."""

    def testFifoOrder(self):
        port = Port(1)
        port.try_write("a")
        port.try_write("b")
        self.assertEqual(port.read(), "a")
        self.assertEqual(port.read(), "b")

    def testEmptyReadYieldsNullData(self):
        port = Port(1)
        self.assertTrue(port.empty())
        self.assertEqual(port.read(), NULL_PORT_DATA)

    def testTryWriteRefusesWhenFull(self):
        port = Port(1, capacity=1)
        self.assertTrue(port.try_write("a"))
        self.assertFalse(port.try_write("b"))
        self.assertEqual(port.read(), "a")
        self.assertTrue(port.empty())

    def testDefaultCapacity(self):
        self.assertEqual(Port(1).capacity, 50)

    def testClear(self):
        port = Port(1)
        port.try_write("a")
        port.clear()
        self.assertTrue(port.empty())


class TestPorts(TestCase):
    """Numbered buffer registry."""

    def testSamePortForNumberAndText(self):
        ports = Ports()
        self.assertIs(ports.get(5), ports.get("5"))

    def testDistinctPorts(self):
        ports = Ports()
        self.assertIsNot(ports.get(1), ports.get(2))

    def testInvalidNumbersRejected(self):
        ports = Ports()
        for number in (0, -1, "x"):
            with self.subTest(number=number):
                with self.assertRaises(ValueError):
                    ports.get(number)

    def testNonIntegerTypesRejected(self):
        ports = Ports()
        for number in (True, 1.5, None):
            with self.subTest(number=number):
                with self.assertRaises(TypeError):
                    ports.get(number)


class TestDrain(TestCase):
    """Reading a buffer back."""

    def testDecodesJsonAndKeepsText(self):
        port = Port(1)
        port.try_write('{"a": 1}')
        port.try_write("plain")
        self.assertEqual(drain(port), [{"a": 1}, "plain"])
        self.assertTrue(port.empty())

    def testNullDataRaises(self):
        port = Port(1)
        port.try_write(NULL_PORT_DATA)
        with self.assertRaises(RuntimeError):
            drain(port)


class TestProbe(IsolatedAsyncioTestCase):
    """Host resolution and report writing."""

    async def testResolveHost(self):
        infos = [
            (socket.AF_INET, socket.SOCK_STREAM, 6, "", ("127.0.0.1", 0)),
            (socket.AF_INET, socket.SOCK_DGRAM, 17, "", ("127.0.0.1", 0)),
        ]
        with mock.patch("socket.getaddrinfo", return_value=infos):
            report = await resolve_host("localhost")
        self.assertEqual(report["host"], "localhost")
        self.assertEqual(report["addresses"], ["127.0.0.1"])
        self.assertEqual(report["families"], ["AF_INET"])
        self.assertGreaterEqual(report["resolveTime"], 0)

    async def testUnknownHostRaisesLookupError(self):
        with mock.patch("socket.getaddrinfo", side_effect=socket.gaierror("no such host")):
            with self.assertRaises(LookupError):
                await resolve_host("nowhere.invalid")

    async def testAnalyzeWritesReport(self):
        port = Port(3)
        self.assertTrue(await analyze("hostA", port, probe))
        self.assertEqual(drain(port), [{"host": "hostA", "addresses": ["10.0.0.1", "10.0.0.2"]}])

    async def testAnalyzeReportsFullPort(self):
        port = Port(3, capacity=1)
        port.try_write("x")
        self.assertFalse(await analyze("hostA", port, probe))


class TestDemoCommands(IsolatedAsyncioTestCase):
    """The demo parser end to end."""

    def setUp(self):
        self.ports = Ports()
        self.cli = build(self.ports, probe)

    async def testPing(self):
        self.assertEqual(await self.cli.parse(["ping"]), "pong")

    async def testGatherInfo(self):
        result = await self.cli.parse(["gather-info", "hostA", "5", "--host", "hostA", "--port", "5"])
        self.assertEqual(result, [{"host": "hostA", "addresses": ["10.0.0.1", "10.0.0.2"]}])
        self.assertTrue(self.ports.get(5).empty())

    async def testGatherInfoNumericPort(self):
        result = await self.cli.parse(["gather-info", "a", "b", "--host", "hostB", "--port", 7])
        self.assertEqual(result[0]["host"], "hostB")

    async def testGatherInfoMissingFlagReturnsHelp(self):
        result = await self.cli.parse(["gather-info", "a", "b", "--host", "hostA"])
        self.assertEqual(result, self.cli.find("gather-info").help())

    async def testGatherInfoProbeFailurePropagates(self):
        async def failing(host):
            raise LookupError(host)

        cli = build(Ports(), failing)
        with self.assertRaises(LookupError):
            await cli.parse(["gather-info", "a", "b", "--host", "x", "--port", "1"])

    async def testScan(self):
        self.assertEqual(await self.cli.parse(["scan", "example"]), ["10.0.0.1", "10.0.0.2"])

    async def testScanHelpShowsPositional(self):
        result = await self.cli.parse(["scan", "--help"])
        self.assertIn("0 - The host to scan.", result)

    async def testGatherInfoDropsStaleBufferData(self):
        self.ports.get(5).try_write("stale")
        result = await self.cli.parse(["gather-info", "a", "b", "--host", "hostA", "--port", "5"])
        self.assertEqual(result, [{"host": "hostA", "addresses": ["10.0.0.1", "10.0.0.2"]}])

    async def testScanAll(self):
        cli = build(Ports(), probe, lambda: ["alpha", "beta"])
        self.assertEqual(
            await cli.parse(["scan-all"]),
            {"alpha": ["10.0.0.1", "10.0.0.2"], "beta": ["10.0.0.1", "10.0.0.2"]},
        )

    async def testScanAllTakesNoArguments(self):
        result = await self.cli.parse(["scan-all", "extra"])
        self.assertEqual(result, self.cli.find("scan-all").help())

    def testLocalHostsIncludeLocalhost(self):
        with mock.patch("socket.gethostname", return_value="box"), mock.patch("socket.getfqdn", return_value="box.lan"):
            self.assertEqual(local_hosts(), ["box", "box.lan", "localhost"])

    def testParserHelp(self):
        self.assertEqual(
            self.cli.help(),
            "\ncli 0.1.0\n\nCommands:\n"
            "ping - A test command\n"
            "gather-info - Gather info on a given host\n"
            "scan - Scan a host\n"
            "scan-all - Scan all hosts connected to the current host\n"
        )


class TestEntryPoint(TestCase):
    """The console entry point."""

    def testMainReturnsNothing(self):
        with mock.patch("argline.__main__.invoke", return_value="pong") as invoke:
            self.assertIsNone(main(["ping"]))
        self.assertEqual(invoke.call_args.args[1], ["ping"])

    def testMainRunsDemoParser(self):
        self.assertIsNone(main(["ping"]))
        self.assertIsNone(main([]))


if __name__ == "__main__":
    unittest.main()
