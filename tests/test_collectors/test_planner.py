"""Tests for the collection planner."""

from pathlib import Path

import pytest

from perfsnap.collectors.capabilities import CapabilitySet
from perfsnap.collectors.planner import (
    EVENT_GROUPS,
    CollectionPlanner,
    TaskKind,
)
from perfsnap.host.context import RunContext
from perfsnap.host.identity import HostIdentity

FULL_LISTING = "\n".join(f"  {tag}  [Tracepoint event]" for tag, _ in EVENT_GROUPS)


@pytest.fixture
def context(tmp_path):
    return RunContext(
        identity=HostIdentity(), duration_s=60, work_dir=tmp_path / "perf_measurement"
    )


@pytest.fixture
def planner():
    return CollectionPlanner(perf_binary="perf", target_process="falcon-sensor")


def _kinds(tasks):
    return [t.kind for t in tasks]


class TestEventSelection:
    def test_all_groups_selected_in_table_order(self):
        events = CollectionPlanner.select_events(CapabilitySet(listing=FULL_LISTING))
        assert events == tuple(event for _, event in EVENT_GROUPS)

    def test_only_present_groups_selected(self):
        caps = CapabilitySet(listing="  kmem:kmalloc\n  sched:sched_switch\n")
        assert CollectionPlanner.select_events(caps) == ("sched:*", "kmem:*")

    def test_filemap_requires_colon(self):
        caps = CapabilitySet(listing="  filemapped-pages\n")
        assert "filemap:*" not in CollectionPlanner.select_events(caps)

    @pytest.mark.parametrize("missing_tag,missing_event", list(EVENT_GROUPS))
    def test_absent_category_never_requested(self, missing_tag, missing_event):
        # Listing built from every other tag; none of them contain the missing one
        others = [t for t, _ in EVENT_GROUPS if missing_tag not in t]
        caps = CapabilitySet(listing="\n".join(others))
        if caps.supports(missing_tag):
            pytest.skip(f"{missing_tag} is a substring of another tag")
        assert missing_event not in CollectionPlanner.select_events(caps)


class TestPlan:
    def test_full_capabilities_order(self, planner, context):
        caps = CapabilitySet(listing=FULL_LISTING + "\n sched:sched_process_exec")
        tasks = planner.plan(caps, context, target_pids=(100,))
        assert _kinds(tasks) == [
            TaskKind.COUNTERS,
            TaskKind.EXEC_TRACE,
            TaskKind.SYSTEM_CALLGRAPH,
            TaskKind.TARGET_CALLGRAPH,
        ]

    def test_empty_capabilities_keep_unconditional_tasks(self, planner, context):
        tasks = planner.plan(CapabilitySet(), context)
        assert _kinds(tasks) == [
            TaskKind.COUNTERS,
            TaskKind.SYSTEM_CALLGRAPH,
            TaskKind.TARGET_CALLGRAPH,
        ]
        counters = tasks[0]
        assert counters.events == ()
        assert counters.command[:4] == ("perf", "stat", "-e", "")

    def test_exec_trace_gated_on_capability(self, planner, context):
        caps = CapabilitySet(listing="  sched:sched_switch\n")
        tasks = planner.plan(caps, context)
        assert TaskKind.EXEC_TRACE not in _kinds(tasks)

    def test_deterministic(self, planner, context):
        caps = CapabilitySet(listing=FULL_LISTING, tool_help="--proc-map-timeout")
        assert planner.plan(caps, context, (5,)) == planner.plan(caps, context, (5,))

    def test_counter_command(self, planner, context):
        caps = CapabilitySet(listing="  sched:sched_switch\n  block:block_rq_issue\n")
        counters = planner.plan(caps, context)[0]
        assert counters.argv == (
            "perf", "stat",
            "-e", "sched:*,block:*",
            "-a",
            "-o", str(context.work_dir / "perf_stats.txt"),
            "--", "sleep", "60",
        )

    def test_duration_applies_to_all_recording_tasks(self, planner, tmp_path):
        context = RunContext(HostIdentity(), duration_s=10, work_dir=tmp_path)
        caps = CapabilitySet(listing=FULL_LISTING + "\n sched:sched_process_exec")
        for task in planner.plan(caps, context, target_pids=(1,)):
            assert task.duration_s == 10
            assert task.argv[-3:] == ("--", "sleep", "10")

    def test_system_callgraph_options(self, planner, context):
        caps = CapabilitySet(listing="x", tool_help="--proc-map-timeout")
        task = [t for t in planner.plan(caps, context) if t.kind == TaskKind.SYSTEM_CALLGRAPH][0]
        assert task.command == (
            "perf", "record", "-a", "-F", "999", "-g",
            "--proc-map-timeout=5000",
            "-o", str(context.work_dir / "whole_system.data"),
        )
        assert task.report_output == context.work_dir / "perf_whole_system_report.txt"
        assert task.report_command[-2:] == ("-i", str(task.output))

    def test_proc_map_timeout_only_when_advertised(self, planner, context):
        tasks = planner.plan(CapabilitySet(listing="x"), context, target_pids=(3,))
        for task in tasks:
            assert not any(arg.startswith("--proc-map-timeout") for arg in task.command)

    def test_target_callgraph_with_pids(self, planner, context):
        tasks = planner.plan(CapabilitySet(), context, target_pids=(12, 42))
        target = tasks[-1]
        assert target.placeholder is None
        assert "-p" in target.command
        assert target.command[target.command.index("-p") + 1] == "12,42"
        assert ("-g", "folded") == target.report_command[3:5]
        assert target.report_output == context.work_dir / "perf_target_report.txt"

    def test_target_not_running_is_placeholder(self, planner, context):
        target = planner.plan(CapabilitySet(), context, target_pids=())[-1]
        assert target.kind == TaskKind.TARGET_CALLGRAPH
        assert target.command == ()
        assert target.placeholder == "falcon-sensor NOT running!"
        assert target.output == context.work_dir / "perf_target_report.txt"
