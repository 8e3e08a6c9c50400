"""Mock investigation simulator backend."""
