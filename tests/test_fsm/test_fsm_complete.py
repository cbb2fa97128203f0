"""
Testes abrangentes para o módulo FSM de conexão.

- Testamos comportamento e contrato público
- Um teste cobre múltiplos componentes relacionados
- Foco em cenários válidos + inválidos + bordas
"""

from __future__ import annotations

from itertools import permutations

import pytest

from fsm import (
    ADVANCEMENT_RANK,
    DEFAULT_INITIAL_STATE,
    SETTLED_STATES,
    TERMINAL_STATES,
    VALID_TRANSITIONS,
    ConnectionObservation,
    ConnectionStateMachine,
    ConnectionStatus,
    GuardResult,
    ObservationSource,
    StateTransition,
    TransitionResult,
    advancement,
    create_fsm,
    evaluate_guards,
    get_valid_targets,
    is_settled,
    is_terminal,
    is_transition_valid,
    is_valid_state,
    parse_status,
    validate_transition_map,
)
from fsm.rules.guards import (
    ACTION_GUARDS,
    DEFAULT_GUARDS,
    OBSERVATION_GUARDS,
    guard_not_less_advanced,
    guard_terminal_state,
    guard_valid_state,
)
from fsm.states.connection import ConnectionStatus as DirectConnectionStatus


def _obs(
    status: ConnectionStatus,
    source: ObservationSource = ObservationSource.POLL,
    remote_id: str | None = None,
) -> ConnectionObservation:
    return ConnectionObservation(
        instance_key="loja_01",
        status=status,
        remote_id=remote_id,
        source=source,
    )


class TestConnectionStatusAndRank:
    """Testa ConnectionStatus, ordem de avanço, TERMINAL_STATES e helpers."""

    def test_enum_has_six_states_with_lowercase_values(self) -> None:
        """
        Cobre: ConnectionStatus, is_valid_state, parse_status
        """
        assert len(list(ConnectionStatus)) == 6
        for state in ConnectionStatus:
            assert state.value == state.name.lower()
            assert str(state) == state.value
            assert is_valid_state(state) is True
            assert parse_status(state.value) is state
            assert parse_status(state.value.upper()) is state

        assert is_valid_state("connected") is False
        with pytest.raises(ValueError):
            parse_status("linked")

    def test_advancement_order_and_settled_states(self) -> None:
        """
        Cobre: ADVANCEMENT_RANK, advancement, is_settled, is_terminal
        """
        assert set(ADVANCEMENT_RANK) == set(ConnectionStatus)
        assert (
            advancement(ConnectionStatus.UNCONFIGURED)
            < advancement(ConnectionStatus.PAIRING)
            < advancement(ConnectionStatus.SCANNING)
            < advancement(ConnectionStatus.CONNECTED)
        )
        # Assentados compartilham o mesmo nível
        assert len({advancement(s) for s in SETTLED_STATES}) == 1
        assert SETTLED_STATES == {
            ConnectionStatus.CONNECTED,
            ConnectionStatus.DISCONNECTED,
            ConnectionStatus.ERROR,
        }
        for state in ConnectionStatus:
            assert is_settled(state) is (state in SETTLED_STATES)
            assert is_terminal(state) is (state == ConnectionStatus.ERROR)

        assert TERMINAL_STATES == {ConnectionStatus.ERROR}
        assert DEFAULT_INITIAL_STATE == ConnectionStatus.UNCONFIGURED

    def test_direct_import_matches_reexport(self) -> None:
        assert DirectConnectionStatus is ConnectionStatus


class TestValidTransitionsAndRules:
    """Testa VALID_TRANSITIONS, get_valid_targets, is_transition_valid e validate_transition_map."""

    def test_transition_map_is_complete_and_valid(self) -> None:
        for state in ConnectionStatus:
            assert state in VALID_TRANSITIONS
            assert state not in VALID_TRANSITIONS[state]
        assert validate_transition_map() == []

    def test_get_valid_targets_and_is_transition_valid_consistency(self) -> None:
        for from_state in ConnectionStatus:
            valid_targets = get_valid_targets(from_state)
            for to_state in ConnectionStatus:
                assert is_transition_valid(from_state, to_state) == (to_state in valid_targets)

    def test_action_paths(self) -> None:
        """Caminho de pareamento, desconexão e retry após erro."""
        assert is_transition_valid(ConnectionStatus.UNCONFIGURED, ConnectionStatus.PAIRING)
        assert is_transition_valid(ConnectionStatus.PAIRING, ConnectionStatus.SCANNING)
        assert is_transition_valid(ConnectionStatus.PAIRING, ConnectionStatus.CONNECTED)
        assert is_transition_valid(ConnectionStatus.SCANNING, ConnectionStatus.PAIRING)
        assert is_transition_valid(ConnectionStatus.CONNECTED, ConnectionStatus.DISCONNECTED)
        assert is_transition_valid(ConnectionStatus.DISCONNECTED, ConnectionStatus.PAIRING)
        assert is_transition_valid(ConnectionStatus.ERROR, ConnectionStatus.PAIRING)

        assert not is_transition_valid(ConnectionStatus.UNCONFIGURED, ConnectionStatus.CONNECTED)
        assert not is_transition_valid(ConnectionStatus.CONNECTED, ConnectionStatus.PAIRING)
        assert get_valid_targets(ConnectionStatus.ERROR) == {ConnectionStatus.PAIRING}


class TestGuardsAndEvaluation:
    """Testa guards individuais, GuardResult e evaluate_guards."""

    def test_guard_result_creation(self) -> None:
        assert GuardResult.allow().allowed is True
        assert GuardResult.allow().reason is None

        result = GuardResult.deny("motivo")
        assert result.allowed is False
        assert result.reason == "motivo"

    def test_individual_guards(self) -> None:
        assert guard_valid_state(ConnectionStatus.PAIRING, ConnectionStatus.SCANNING).allowed
        assert not guard_valid_state("pairing", ConnectionStatus.SCANNING).allowed  # type: ignore[arg-type]

        assert not guard_terminal_state(ConnectionStatus.ERROR, ConnectionStatus.CONNECTED).allowed
        assert guard_terminal_state(ConnectionStatus.CONNECTED, ConnectionStatus.ERROR).allowed

        denied = guard_not_less_advanced(ConnectionStatus.CONNECTED, ConnectionStatus.SCANNING)
        assert not denied.allowed
        assert "obsoleta" in (denied.reason or "")
        assert guard_not_less_advanced(
            ConnectionStatus.CONNECTED, ConnectionStatus.DISCONNECTED
        ).allowed

    def test_evaluate_guards_uses_observation_guards_by_default(self) -> None:
        assert DEFAULT_GUARDS is OBSERVATION_GUARDS
        assert evaluate_guards(ConnectionStatus.UNCONFIGURED, ConnectionStatus.CONNECTED).allowed
        assert not evaluate_guards(
            ConnectionStatus.UNCONFIGURED, ConnectionStatus.CONNECTED, ACTION_GUARDS
        ).allowed
        assert evaluate_guards(ConnectionStatus.ERROR, ConnectionStatus.PAIRING, []).allowed


class TestObservationAndTransitionTypes:
    def test_observation_validation(self) -> None:
        obs = _obs(ConnectionStatus.SCANNING, ObservationSource.PUSH)
        assert obs.is_action is False
        assert obs.to_log_dict()["source"] == "push"
        assert _obs(ConnectionStatus.PAIRING, ObservationSource.ACTION).is_action is True

        with pytest.raises(ValueError):
            ConnectionObservation(instance_key=" ", status=ConnectionStatus.CONNECTED)
        with pytest.raises(ValueError):
            ConnectionObservation(instance_key="k", status="connected")  # type: ignore[arg-type]

    def test_transition_types_validation(self) -> None:
        transition = StateTransition(
            from_state=ConnectionStatus.SCANNING,
            to_state=ConnectionStatus.CONNECTED,
            trigger="push",
            sequence=3,
        )
        assert transition.status_changed is True
        assert transition.to_log_dict()["to_state"] == "connected"

        with pytest.raises(ValueError):
            StateTransition(
                from_state=ConnectionStatus.SCANNING,
                to_state=ConnectionStatus.CONNECTED,
                trigger="",
                sequence=1,
            )
        with pytest.raises(ValueError):
            StateTransition(
                from_state=ConnectionStatus.SCANNING,
                to_state=ConnectionStatus.CONNECTED,
                trigger="poll",
                sequence=0,
            )
        with pytest.raises(ValueError):
            TransitionResult(success=True)
        with pytest.raises(ValueError):
            TransitionResult(success=False)


class TestConnectionStateMachine:
    """Testa apply/evaluate sobre sequências de observações."""

    def test_observations_fold_to_same_result_in_any_order(self) -> None:
        observed = [
            ConnectionStatus.PAIRING,
            ConnectionStatus.CONNECTED,
            ConnectionStatus.SCANNING,
        ]
        for order in permutations(observed):
            machine = create_fsm("loja_01")
            for status in order:
                machine.apply(_obs(status))
            assert machine.current_state == ConnectionStatus.CONNECTED, order

    def test_stale_poll_after_push_is_rejected(self) -> None:
        machine = create_fsm("loja_01")

        assert machine.apply(_obs(ConnectionStatus.PAIRING, ObservationSource.ACTION)).success
        assert machine.apply(_obs(ConnectionStatus.SCANNING)).success
        assert machine.apply(
            _obs(ConnectionStatus.CONNECTED, ObservationSource.PUSH, "5511999990000")
        ).success

        late = machine.apply(_obs(ConnectionStatus.PAIRING))
        assert late.success is False
        assert machine.current_state == ConnectionStatus.CONNECTED
        assert machine.remote_id == "5511999990000"
        assert machine.sequence == 3

    def test_identical_observation_is_not_a_transition(self) -> None:
        machine = create_fsm(
            "loja_01", ConnectionStatus.CONNECTED, remote_id="5511", sequence=7
        )

        same = machine.apply(_obs(ConnectionStatus.CONNECTED, remote_id="5511"))
        no_info = machine.apply(_obs(ConnectionStatus.CONNECTED))

        assert same.success is False
        assert "Sem mudança" in (same.error_reason or "")
        assert no_info.success is False
        assert machine.sequence == 7
        assert machine.current_state == ConnectionStatus.CONNECTED

    def test_remote_id_refresh_on_same_status(self) -> None:
        machine = create_fsm("loja_01", ConnectionStatus.CONNECTED, remote_id="5511")

        result = machine.apply(_obs(ConnectionStatus.CONNECTED, remote_id="5521"))

        assert result.success is True
        assert result.transition is not None
        assert result.transition.status_changed is False
        assert machine.remote_id == "5521"
        assert machine.sequence == 1

    def test_error_is_terminal_for_observations_but_not_for_retry(self) -> None:
        machine = create_fsm("loja_01", ConnectionStatus.ERROR)

        assert not machine.apply(_obs(ConnectionStatus.CONNECTED, ObservationSource.PUSH)).success
        assert not machine.apply(_obs(ConnectionStatus.ERROR, remote_id="x")).success
        assert machine.is_terminal is True

        retry = machine.apply(_obs(ConnectionStatus.PAIRING, ObservationSource.ACTION))
        assert retry.success is True
        assert machine.current_state == ConnectionStatus.PAIRING

    def test_action_outside_graph_is_denied(self) -> None:
        machine = ConnectionStateMachine(instance_key="loja_01")

        result = machine.apply(_obs(ConnectionStatus.CONNECTED, ObservationSource.ACTION))

        assert result.success is False
        assert "Transição inválida" in (result.error_reason or "")

    def test_apply_keeps_previous_remote_id_and_metadata(self) -> None:
        machine = create_fsm("loja_01", ConnectionStatus.CONNECTED, remote_id="5511", sequence=4)

        result = machine.apply(
            _obs(ConnectionStatus.DISCONNECTED, ObservationSource.PUSH),
            metadata={"event": "CONNECTION_UPDATE"},
        )

        assert result.success is True
        assert result.transition is not None
        assert result.transition.trigger == "push"
        assert result.transition.sequence == 5
        assert result.transition.remote_id == "5511"
        assert result.transition.to_log_dict()["metadata"] == {"event": "CONNECTION_UPDATE"}
        assert machine.current_state == ConnectionStatus.DISCONNECTED
        assert machine.remote_id == "5511"
