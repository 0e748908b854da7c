from src.core.quantum_terms import QUANTUM_TERMS, filter_quantum_terms, is_quantum_term


class TestQuantumTerms:
    def test_core_terms_present(self):
        for term in ("qubit", "superposition", "entanglement", "decoherence", "quantum"):
            assert term in QUANTUM_TERMS

    def test_no_duplicates_and_lowercase(self):
        assert len(set(QUANTUM_TERMS)) == len(QUANTUM_TERMS)
        assert all(term == term.lower() for term in QUANTUM_TERMS)


class TestIsQuantumTerm:
    def test_exact_and_case_insensitive(self):
        assert is_quantum_term("qubit")
        assert is_quantum_term("QAOA")
        assert is_quantum_term("Qubit")

    def test_other_words(self):
        assert not is_quantum_term("hello")
        assert not is_quantum_term("javascript")


class TestFilterQuantumTerms:
    def test_removes_terms_in_order(self):
        assert filter_quantum_terms(["qubit", "hello", "entanglement", "world"]) == [
            "hello",
            "world",
        ]

    def test_all_terms(self):
        assert filter_quantum_terms(["qubit", "superposition"]) == []

    def test_no_terms(self):
        assert filter_quantum_terms(["hello", "world"]) == ["hello", "world"]
