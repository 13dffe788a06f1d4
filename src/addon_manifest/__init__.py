"""
addon-manifest - GitHub release manifest generator for the OMSI 2 addon installer

Core Components:
- config: tracked repository and addon definitions
- github_source: GitHub releases API access
- selection: release selection and version extraction
- assets: download artifact resolution (single assets and multi-volume archives)
- manifest: manifest entry assembly, sorting and overrides
- writer: manifest persistence
- pipeline: end-to-end generation run
"""
