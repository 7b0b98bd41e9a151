from pfc.models.entry import PfcDelta, PfcTotals, PfcPayload, PfcResponse  # noqa: F401

__all__ = ["PfcDelta", "PfcTotals", "PfcPayload", "PfcResponse"]
