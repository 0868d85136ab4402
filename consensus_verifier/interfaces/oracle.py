"""Abstract base class for research oracles.

An oracle answers one research question about a subject and reports the
outcome as an :class:`OracleResponse`.  The contract is strict about
failure: ``query`` never raises.  Transport errors, timeouts and
unparseable replies come back as ``ERROR`` responses so the fan-out can
always collect one response per oracle.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from consensus_verifier.models.oracle import OracleResponse


# Concrete implementation: LLMOracle (consensus_verifier/providers/oracle/)
class IOracle(ABC):
    @property
    @abstractmethod
    def oracle_id(self) -> str:
        """Stable identifier; distinct oracles must have distinct ids."""

    @abstractmethod
    async def query(self, subject_display_name: str, prompt_contract: str) -> OracleResponse:
        """Ask the oracle about *subject_display_name* under *prompt_contract*.

        Returns
        -------
        OracleResponse
            CLAIMS, REFUSED or ERROR.  Never raises for oracle-side problems.
        """
