"""Diagrammer — portable diagram documents and the geometry engine behind them.

Packages:
  scene      Scene document schema, validation, serialization.
  ports      Port geometry, cached resolution, connector attachments.
  routing    Straight / orthogonal / curved connector paths and sampling.
  layout     Grid, flow, hierarchical and force-directed placement.
  assets     Icon lookup with caching and request deduplication.
  render     Render target contract, primitives and the render tree.
  pipeline   Scene document ⇄ render tree conversion.
  ops        Command layer over a render tree.
  web        FastAPI surface.
"""

__version__ = "0.1.0"
