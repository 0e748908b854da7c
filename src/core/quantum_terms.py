"""
Quantum computing vocabulary that the spelling checks leave alone.

Terms are stored lowercase; lookups ignore case. Established field names such
as "quantum approximate optimization" keep their US spelling.
"""

from __future__ import annotations

from collections.abc import Iterable

QUANTUM_TERMS: tuple[str, ...] = (
    # Core concepts
    "quantum",
    "qubit",
    "qubits",
    "qutrit",
    "qudit",
    "superposition",
    "entanglement",
    "entangled",
    "decoherence",
    "coherence",
    "interference",
    "teleportation",
    "measurement",
    "hamiltonian",
    "eigenvalue",
    "eigenstate",
    "ansatz",
    "variational",
    "annealing",
    "annealer",
    # Field names spelled the US way
    "optimization",
    "optimizations",
    "optimizer",
    "optimizers",
    "parameterized",
    "parameterization",
    # Algorithms and acronyms
    "qaoa",
    "vqe",
    "qpe",
    "qft",
    "qml",
    "qkd",
    "qec",
    "nisq",
    "ftqc",
    "grover",
    "shor",
    # Gates
    "hadamard",
    "pauli",
    "cnot",
    "toffoli",
    "bloch",
    # Hardware
    "transmon",
    "fluxonium",
    "superconducting",
    "photonic",
    "topological",
    "cryostat",
    # Software
    "qiskit",
    "cirq",
    "pennylane",
    "braket",
)

_TERMS = frozenset(QUANTUM_TERMS)


def is_quantum_term(word: str) -> bool:
    return word.lower() in _TERMS


def filter_quantum_terms(words: Iterable[str]) -> list[str]:
    """Words that are not quantum terms, in their original order."""
    return [w for w in words if not is_quantum_term(w)]
