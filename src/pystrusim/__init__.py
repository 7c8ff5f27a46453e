"""
Python tool to compare two 3D structures of the same (or homologous) macromolecule through their pairwise distance matrices.
Computes an angular distance, a clique cover of locally similar regions and a set of growing globally similar regions.
"""
