"""
Tests for paired write execution.
"""

import pytest

from marketplace.services.consistency import WriteStep, run_paired_writes
from marketplace.utils.exceptions import StoreError, StoreTimeoutError


class Recorder:
    """Builds write operations that record their calls."""

    def __init__(self):
        self.calls = []

    def ok(self, name):
        async def operation():
            self.calls.append(name)
        return operation

    def fail(self, name, error):
        async def operation():
            self.calls.append(name)
            raise error
        return operation


class TestRunPairedWrites:
    """Test ordered multi-document writes."""

    @pytest.mark.asyncio
    async def test_all_steps_succeed(self):
        """Test a fully applied write has no warning."""
        recorder = Recorder()

        result = await run_paired_writes([
            WriteStep("first", recorder.ok("first"), "First failed"),
            WriteStep("second", recorder.ok("second"), "Second failed"),
        ])

        assert recorder.calls == ["first", "second"]
        assert result.completed == ["first", "second"]
        assert result.is_partial is False
        assert result.warning is None

    @pytest.mark.asyncio
    async def test_first_step_failure_raises(self):
        """Test a failed primary write raises and skips the rest."""
        recorder = Recorder()

        with pytest.raises(StoreError, match="First failed: Database operation failed"):
            await run_paired_writes([
                WriteStep("first", recorder.fail("first", StoreError()), "First failed"),
                WriteStep("second", recorder.ok("second"), "Second failed"),
            ])

        assert recorder.calls == ["first"]

    @pytest.mark.asyncio
    async def test_error_type_is_preserved(self):
        """Test a timeout stays a timeout when context is added."""
        recorder = Recorder()

        with pytest.raises(StoreTimeoutError):
            await run_paired_writes([
                WriteStep("first", recorder.fail("first", StoreTimeoutError()), "First failed"),
            ])

    @pytest.mark.asyncio
    async def test_later_failure_is_partial(self):
        """Test a failed later write returns a warning and stops the sequence."""
        recorder = Recorder()

        result = await run_paired_writes([
            WriteStep("first", recorder.ok("first"), "First failed"),
            WriteStep("second", recorder.fail("second", StoreError("boom")), "Second failed"),
            WriteStep("third", recorder.ok("third"), "Third failed"),
        ])

        assert recorder.calls == ["first", "second"]
        assert result.completed == ["first"]
        assert result.skipped == ["third"]
        assert result.warning == "Second failed: boom"

    @pytest.mark.asyncio
    async def test_attempt_all_continues_after_failure(self):
        """Test every step is attempted when not stopping on failure."""
        recorder = Recorder()

        result = await run_paired_writes([
            WriteStep("first", recorder.fail("first", StoreError("down")), "First failed"),
            WriteStep("second", recorder.ok("second"), "Second failed"),
        ], stop_on_failure=False)

        assert recorder.calls == ["first", "second"]
        assert result.completed == ["second"]
        assert result.warning == "First failed: down"

    @pytest.mark.asyncio
    async def test_attempt_all_raises_last_error_when_everything_fails(self):
        """Test the last error is raised when no step succeeded."""
        recorder = Recorder()

        with pytest.raises(StoreError, match="Second failed: second down"):
            await run_paired_writes([
                WriteStep("first", recorder.fail("first", StoreError("first down")), "First failed"),
                WriteStep("second", recorder.fail("second", StoreError("second down")), "Second failed"),
            ], stop_on_failure=False)

        assert recorder.calls == ["first", "second"]
