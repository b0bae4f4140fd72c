"""HTTP surface for the AMM engine."""
