"""Risk-free rate and dividend yield tables."""
