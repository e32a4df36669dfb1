"""mathfeed: adaptive math practice engine."""
