"""
Service layer for RNA-seq QC.

This subpackage contains code that interacts with the outside world:
input directories, manifests and the written output tables and figures.
"""
