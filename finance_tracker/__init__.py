"""Console interface package for the finance tracker."""
