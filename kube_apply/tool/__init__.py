"""Command line tool for kube-apply."""
