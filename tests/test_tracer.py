"""Tests for the tracer module."""

import json
import os

import numpy as np
import pytest


class TestSummarize:
    """Tests for object summarization."""

    def test_numpy_array_summary(self):
        """Test that numpy arrays are summarized with shape and type."""
        from nosgen.tracer import summarize

        arr = np.zeros((64, 32, 4), dtype=np.uint8)
        summary = summarize(arr)

        assert "ndarray" in summary
        assert "64x32x4" in summary
        assert "uint8" in summary

    def test_summary_capped_length(self):
        from nosgen.tracer import summarize

        large_dict = {f"key_{i}": f"value_{i}" for i in range(100)}
        summary = summarize(large_dict, max_len=40)

        assert len(summary) <= 40

    def test_list_summary(self):
        from nosgen.tracer import summarize

        summary = summarize([1, 2, 3, 4, 5])

        assert "list" in summary
        assert "len=5" in summary

    def test_none_summary(self):
        from nosgen.tracer import summarize

        assert summarize(None) == "None"

    def test_fit_model_summary_shows_shape(self):
        """Fit models are summarized by their shape tag."""
        from nosgen.models import CircleModel
        from nosgen.tracer import summarize

        summary = summarize(CircleModel(cx=0, cy=0, r=1, phase=0))

        assert summary == "CircleModel(shape=circle)"

    def test_frame_summary(self, frame_factory):
        from nosgen.tracer import summarize

        assert "FrameData" in summarize(frame_factory("a"))


class TestTracerSpan:
    """Tests for tracer span functionality."""

    def test_span_nesting(self, capsys):
        """Spans log start and end lines, events inside are indented."""
        from nosgen.tracer import configure_tracer, get_tracer

        configure_tracer(enabled=True, level="INFO")
        tracer = get_tracer()

        try:
            with tracer.span("outer", module="test"):
                with tracer.span("inner", module="test"):
                    tracer.event("inside")
        finally:
            configure_tracer(enabled=False)

        lines = capsys.readouterr().err.strip().split("\n")
        assert len(lines) == 5
        assert "    test:inner  inside" in lines[2]

    def test_level_filter(self, capsys):
        from nosgen.tracer import configure_tracer, get_tracer

        configure_tracer(enabled=True, level="WARN")
        try:
            get_tracer().event("hidden", level="DEBUG")
            get_tracer().event("shown", level="WARN")
        finally:
            configure_tracer(enabled=False)

        err = capsys.readouterr().err
        assert "hidden" not in err
        assert "shown" in err

    def test_span_error_reraised(self, capsys):
        from nosgen.tracer import configure_tracer, get_tracer

        configure_tracer(enabled=True)
        tracer = get_tracer()
        try:
            with pytest.raises(ValueError):
                with tracer.span("boom", module="test"):
                    raise ValueError("bad input")
            assert tracer._span_stack == []
        finally:
            configure_tracer(enabled=False)

        assert "failed" in capsys.readouterr().err

    def test_json_lines_to_file(self, temp_dir, capsys):
        from nosgen.tracer import configure_tracer, get_tracer

        path = os.path.join(temp_dir, "trace.log")
        configure_tracer(enabled=True, file_path=path, json_output=True)
        try:
            get_tracer().event("fit done", error=0.5)
        finally:
            configure_tracer(enabled=False)

        with open(path, "r", encoding="utf-8") as f:
            lines = f.read().strip().split("\n")
        record = json.loads(lines[1])
        assert record["message"] == "fit done error=0.5"
        assert record["meta"] == {"error": "0.5"}

    def test_tracer_disabled_no_output(self, capsys):
        from nosgen.tracer import configure_tracer, get_tracer

        configure_tracer(enabled=False)
        tracer = get_tracer()

        with tracer.span("test", module="test"):
            tracer.event("should not appear")

        assert capsys.readouterr().err == ""


class TestTraceDecorator:
    """Tests for the @trace decorator."""

    def test_decorator_runs_function(self):
        from nosgen.tracer import configure_tracer, trace

        configure_tracer(enabled=False)

        @trace(label="double")
        def double(x):
            return x * 2

        assert double(5) == 10

    def test_decorator_logs_arguments(self, capsys):
        from nosgen.tracer import configure_tracer, trace

        @trace(label="pack", arg_names=["rows"])
        def pack(frames, rows=1):
            return rows

        configure_tracer(enabled=True)
        try:
            assert pack([], rows=3) == 3
        finally:
            configure_tracer(enabled=False)

        assert "start rows=3" in capsys.readouterr().err

    def test_decorator_with_exception(self):
        from nosgen.tracer import configure_tracer, trace

        configure_tracer(enabled=False)

        @trace(label="failing_func")
        def failing_func():
            raise ValueError("test error")

        with pytest.raises(ValueError):
            failing_func()
