from match3.components.resolution import (
    CascadeStep,
    CreatedSpecial,
    FailureReason,
    FramePhase,
    ResolutionPhase,
    ResolutionResult,
)
from match3.components.token import SpecialKind
from match3.events.bus import (
    EVENT_BOARD_CHANGED,
    EVENT_CASCADE_COMPLETE,
    EVENT_CASCADE_STEP,
    EVENT_COMBO_TRIGGERED,
    EVENT_MATCH_CLEARED,
    EVENT_MATCH_FOUND,
    EVENT_POINT_BLANK_REQUEST,
    EVENT_SPECIAL_CREATED,
    EVENT_SWAP_INVALID,
    EVENT_SWAP_REQUEST,
)
from match3.systems.board_ops import columns_settled
from match3.systems.engine_state_utils import get_or_create_engine_state
from match3.systems.match_detection import find_match_groups
from match3.systems.playability import has_valid_moves
from tests.helpers import filler_rows, make_engine, scenario_layout


def assert_committed_board_is_sound(engine):
    grid = engine.grid
    assert grid.empty_count() == 0, "Committed board must be full"
    assert columns_settled(grid)
    assert not find_match_groups(grid), "Committed board must be stable"
    assert has_valid_moves(grid), "Committed board must be playable"


def kind_ids(grid):
    return [[(token.kind, token.id) if token else None for token in row] for row in grid.cells]


def four_run_layout():
    rows = filler_rows()
    rows[4][0] = "A"
    rows[4][1] = "A"
    rows[4][2] = "B"
    rows[4][3] = "A"
    rows[3][2] = "A"
    return rows


def test_valid_swap_clears_and_scores(scenario_engine):
    result = scenario_engine.swap((4, 4), (4, 5))
    assert result.valid and result.reason is None
    first = result.steps[0]
    assert first.index == 1
    assert first.removed == [(4, 2), (4, 3), (4, 4)]
    assert first.score == 180
    assert result.total_removed == sum(len(step.removed) for step in result.steps)
    assert result.total_score == sum(step.score for step in result.steps)
    assert_committed_board_is_sound(scenario_engine)


def test_cascade_depth_multiplies_score(scenario_engine):
    result = scenario_engine.swap((4, 4), (4, 5))
    for depth, step in enumerate(result.steps, start=1):
        assert step.index == depth
        assert step.score == len(step.removed) * 60 * depth


def test_rejections_leave_board_untouched(scenario_engine, bus):
    invalid = []
    bus.subscribe(EVENT_SWAP_INVALID, lambda s, **k: invalid.append(k["reason"]))
    before = kind_ids(scenario_engine.grid)

    cases = [
        (((0, 0), (0, 2)), FailureReason.NOT_ADJACENT),
        (((0, 0), (1, 1)), FailureReason.NOT_ADJACENT),
        (((0, 0), (0, 0)), FailureReason.NOT_ADJACENT),
        (((0, 0), (-1, 0)), FailureReason.OUT_OF_BOUNDS),
        (((8, 8), (8, 9)), FailureReason.OUT_OF_BOUNDS),
        (((0, 0), (0, 1)), FailureReason.NO_MATCH),
    ]
    for (a, b), reason in cases:
        result = scenario_engine.swap(a, b)
        assert not result.valid
        assert result.reason is reason
        assert result.steps == [] and result.total_score == 0
        assert kind_ids(scenario_engine.grid) == before, f"{reason} must not modify the board"
    assert invalid == [reason for _, reason in cases]

    state = get_or_create_engine_state(scenario_engine.world)
    assert state.phase is ResolutionPhase.REJECTED_NO_MATCH
    assert FailureReason.OUT_OF_BOUNDS.value == "out-of-bounds"


def test_free_swap_commits_without_match(scenario_engine):
    a_token = scenario_engine.grid.get((0, 0))
    b_token = scenario_engine.grid.get((0, 1))
    result = scenario_engine.free_swap((0, 0), (0, 1))
    assert result.valid
    assert result.steps == []
    assert scenario_engine.grid.get((0, 1)) is a_token
    assert scenario_engine.grid.get((0, 0)) is b_token


def test_free_swap_still_validates_adjacency(scenario_engine):
    result = scenario_engine.free_swap((0, 0), (2, 0))
    assert result.reason is FailureReason.NOT_ADJACENT


def test_four_run_creates_row_clear_at_swap_cell(bus):
    engine = make_engine(four_run_layout(), bus=bus)
    created = []
    bus.subscribe(EVENT_SPECIAL_CREATED, lambda s, **k: created.append(k["special"]))
    result = engine.swap((3, 2), (4, 2))
    first = result.steps[0]
    assert first.created == [CreatedSpecial((4, 2), SpecialKind.ROW_CLEAR, "A")]
    assert first.removed == [(4, 0), (4, 1), (4, 3)]
    assert created[0] == first.created[0]
    assert result.created_specials()[0] == first.created[0]


def test_double_color_bomb_combo_clears_the_board(scenario_engine, bus):
    combos = []
    bus.subscribe(EVENT_COMBO_TRIGGERED, lambda s, **k: combos.append(k))
    scenario_engine.board.place((0, 0), "x", SpecialKind.COLOR_BOMB)
    scenario_engine.board.place((0, 1), "y", SpecialKind.COLOR_BOMB)
    result = scenario_engine.swap((0, 0), (0, 1))
    first = result.steps[0]
    assert first.combo
    assert len(first.removed) == 81
    assert first.score == 7290
    assert combos and combos[0]["rule"] == "double_color"
    assert result.frames[0].phase is FramePhase.SPECIAL_DETONATION
    assert_committed_board_is_sound(scenario_engine)


def test_special_swapped_with_plain_token_fires(scenario_engine):
    scenario_engine.board.place((0, 0), "x", SpecialKind.COLUMN_CLEAR)
    result = scenario_engine.swap((0, 0), (0, 1))
    assert result.valid
    assert sorted(result.steps[0].removed) == [(r, 1) for r in range(9)]
    assert result.steps[0].combo


def test_point_blank_detonates_special(scenario_engine):
    scenario_engine.board.place((0, 0), "x", SpecialKind.ROW_CLEAR)
    result = scenario_engine.point_blank((0, 0))
    assert result.valid
    assert sorted(result.steps[0].removed) == [(0, c) for c in range(9)]
    assert result.steps[0].score == 540
    assert result.frames[0].phase is FramePhase.SPECIAL_DETONATION
    assert_committed_board_is_sound(scenario_engine)


def test_point_blank_on_plain_token_removes_one_cell(scenario_engine):
    result = scenario_engine.point_blank((8, 8))
    assert result.steps[0].removed == [(8, 8)]
    assert result.steps[0].score == 60
    assert result.frames[0].phase is FramePhase.MATCH_REVEAL


def test_point_blank_rejections(scenario_engine):
    assert scenario_engine.point_blank((9, 0)).reason is FailureReason.OUT_OF_BOUNDS
    scenario_engine.grid.set((0, 0), None)
    assert scenario_engine.point_blank((0, 0)).reason is FailureReason.NO_MATCH


def test_frames_follow_resolution_order(scenario_engine):
    result = scenario_engine.swap((4, 4), (4, 5))
    phases = [frame.phase for frame in result.frames]
    assert phases[0] is FramePhase.MATCH_REVEAL
    assert phases[1] is FramePhase.POST_COLLAPSE
    assert phases[-1] is FramePhase.FINAL
    waves = [p for p in phases if p in (FramePhase.MATCH_REVEAL, FramePhase.SPECIAL_DETONATION)]
    assert len(waves) == len(result.steps)
    assert result.frames[0].removed == ((4, 2), (4, 3), (4, 4))
    assert result.frames[0].grid.kind_at((4, 4)) == "A", "Reveal frame shows the swapped board"
    assert kind_ids(result.frames[-1].grid) == kind_ids(scenario_engine.grid)


def test_frames_can_be_disabled():
    engine = make_engine(scenario_layout(), capture_frames=False)
    result = engine.swap((4, 4), (4, 5))
    assert result.valid and result.frames == []


def test_state_walks_through_phases(scenario_engine):
    scenario_engine.swap((4, 4), (4, 5))
    state = get_or_create_engine_state(scenario_engine.world)
    assert state.history == [
        ResolutionPhase.VALIDATING,
        ResolutionPhase.RESOLVING,
        ResolutionPhase.STABILIZING,
        ResolutionPhase.PLAYABILITY_CHECK,
        ResolutionPhase.COMMITTED,
    ]
    assert state.action == "swap"
    assert state.last_result is not None and state.last_result.valid


def test_events_drive_the_presentation_layer(scenario_engine, bus):
    found, cleared, steps, complete, changed = [], [], [], {}, []
    bus.subscribe(EVENT_MATCH_FOUND, lambda s, **k: found.append(k["depth"]))
    bus.subscribe(EVENT_MATCH_CLEARED, lambda s, **k: cleared.append(k))
    bus.subscribe(EVENT_CASCADE_STEP, lambda s, **k: steps.append(k["step"]))
    bus.subscribe(EVENT_CASCADE_COMPLETE, lambda s, **k: complete.update(k))
    bus.subscribe(EVENT_BOARD_CHANGED, lambda s, **k: changed.append(k.get("reason")))

    bus.emit(EVENT_SWAP_REQUEST, src=(4, 4), dst=(4, 5))

    assert found[0] == 1
    assert cleared[0]["positions"] == [(4, 2), (4, 3), (4, 4)]
    assert cleared[0]["kinds"] == [(4, 2, "A"), (4, 3, "A"), (4, 4, "A")]
    assert [step.index for step in steps] == list(range(1, len(steps) + 1))
    assert complete["action"] == "swap" and complete["result"].valid
    assert changed == ["swap"]


def test_point_blank_request_event(scenario_engine, bus):
    complete = {}
    bus.subscribe(EVENT_CASCADE_COMPLETE, lambda s, **k: complete.update(k))
    bus.emit(EVENT_POINT_BLANK_REQUEST, target=(2, 2))
    assert complete["action"] == "point_blank"


def test_removal_counts_track_repeated_clears():
    result = ResolutionResult(valid=True)
    result.add_step(CascadeStep(index=1, removed=[(0, 0), (0, 1), (0, 2)], score=180))
    result.add_step(CascadeStep(index=2, removed=[(0, 1), (1, 1), (2, 1)], score=360))
    assert result.removal_counts() == {(0, 0): 1, (0, 1): 2, (0, 2): 1, (1, 1): 1, (2, 1): 1}
    assert result.cascade_count == 2
    assert result.total_removed == 6
    assert result.total_score == 540


def test_detonation_through_a_hole_scores_only_real_tokens(scenario_engine):
    scenario_engine.board.place((0, 0), "A")
    scenario_engine.board.place((0, 1), "A", SpecialKind.ROW_CLEAR)
    scenario_engine.board.place((0, 2), "A")
    scenario_engine.grid.set((0, 8), None)

    result = scenario_engine.free_swap((8, 0), (8, 1))
    first = result.steps[0]
    assert sorted(first.removed) == [(0, c) for c in range(8)]
    assert first.score == 480, "8 tokens x 60 x depth 1"
    assert first.detonated == [(0, 1)]
    assert result.frames[0].phase is FramePhase.SPECIAL_DETONATION
    assert_committed_board_is_sound(scenario_engine)


def test_point_blank_step_records_detonation(scenario_engine):
    scenario_engine.board.place((0, 0), "x", SpecialKind.COLUMN_CLEAR)
    result = scenario_engine.point_blank((0, 0))
    assert result.steps[0].detonated == [(0, 0)]
