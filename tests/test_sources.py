"""Tests for line sources."""

import asyncio
import os

import pytest

from firehose_reader.sources import LineChannel, iter_lines, lines_from_file, lines_from_pipe, lines_from_stream


class TestLineChannel:
    @pytest.mark.asyncio
    async def test_drains_then_stops_after_close(self):
        channel = LineChannel()
        channel.put_nowait("a")
        await channel.put("b")
        channel.close()

        assert [line async for line in channel] == ["a", "b"]

    @pytest.mark.asyncio
    async def test_close_is_idempotent(self):
        channel = LineChannel()
        channel.close()
        channel.close()

        assert channel.closed
        assert [line async for line in channel] == []

    @pytest.mark.asyncio
    async def test_iteration_after_end_stays_ended(self):
        channel = LineChannel()
        channel.close()

        assert [line async for line in channel] == []
        assert [line async for line in channel] == []

    @pytest.mark.asyncio
    async def test_put_after_close_raises(self):
        channel = LineChannel()
        channel.close()

        with pytest.raises(RuntimeError):
            await channel.put("late")
        with pytest.raises(RuntimeError):
            channel.put_nowait("late")

    @pytest.mark.asyncio
    async def test_consumer_waits_for_producer(self):
        channel = LineChannel()

        async def produce():
            await asyncio.sleep(0.01)
            await channel.put("late line")
            channel.close()

        task = asyncio.create_task(produce())
        lines = [line async for line in channel]
        await task

        assert lines == ["late line"]


class TestAdapters:
    @pytest.mark.asyncio
    async def test_iter_lines_strips_newlines(self):
        lines = [line async for line in iter_lines(["a\n", "b\r\n", "c"])]

        assert lines == ["a", "b", "c"]

    @pytest.mark.asyncio
    async def test_lines_from_file(self, tmp_path):
        path = tmp_path / "node.log"
        path.write_text("booting\nFIRE BLOCK_START 1\n")

        lines = [line async for line in lines_from_file(path)]

        assert lines == ["booting", "FIRE BLOCK_START 1"]

    @pytest.mark.asyncio
    async def test_lines_from_stream(self):
        stream = asyncio.StreamReader()
        stream.feed_data(b"first\nFIRE TRX abc\nlast")
        stream.feed_eof()

        lines = [line async for line in lines_from_stream(stream)]

        assert lines == ["first", "FIRE TRX abc", "last"]

    @pytest.mark.integration
    @pytest.mark.asyncio
    async def test_lines_from_subprocess(self):
        process = await asyncio.create_subprocess_exec(
            "printf", "FIRE INIT a\\nnoise\\n", stdout=asyncio.subprocess.PIPE
        )

        lines = [line async for line in lines_from_stream(process.stdout)]
        await process.wait()

        assert lines == ["FIRE INIT a", "noise"]

    @pytest.mark.asyncio
    async def test_lines_from_pipe(self):
        read_fd, write_fd = os.pipe()
        os.write(write_fd, b"booting\nFIRE BLOCK_START 1\r\n")
        os.close(write_fd)

        with os.fdopen(read_fd, "rb") as pipe:
            lines = [line async for line in lines_from_pipe(pipe)]

        assert lines == ["booting", "FIRE BLOCK_START 1"]

    @pytest.mark.asyncio
    async def test_lines_from_pipe_with_redirected_file(self, tmp_path):
        path = tmp_path / "node.log"
        path.write_text("booting\nFIRE BLOCK_START 1\n")

        with open(path) as redirected:
            lines = [line async for line in lines_from_pipe(redirected)]
            assert not redirected.closed

        assert lines == ["booting", "FIRE BLOCK_START 1"]
