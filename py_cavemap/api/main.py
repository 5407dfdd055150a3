"""FastAPI main application."""

import logging
from typing import List, Optional

import structlog
from fastapi import FastAPI, HTTPException
from pydantic import BaseModel, Field

from .. import __version__
from ..config import settings
from ..core.cave_generator import CaveGenerator, CaveOptions
from ..core.cave_map import CaveMap
from ..core.contour_builder import ContourBuilder, TriangulateMode
from ..core.density_grid import ArrayDensitySource


def configure_logging(level: str = settings.log_level, fmt: str = settings.log_format) -> None:
    """Configure structlog on top of the standard library logger."""
    logging.basicConfig(format="%(message)s", level=getattr(logging, level.upper(), logging.INFO))
    renderer = (
        structlog.dev.ConsoleRenderer()
        if fmt == "plain"
        else structlog.processors.JSONRenderer()
    )
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


configure_logging()
logger = structlog.get_logger()

# Initialize FastAPI app
app = FastAPI(
    title="Cave Map API",
    description="Cave generation and marching squares contouring",
    version=__version__,
)


# Request/Response models
class ContourSettings(BaseModel):
    """Contouring options shared by all requests."""

    triangulate_mode: TriangulateMode = Field(
        settings.triangulate_mode, description="Cell traversal order"
    )
    triangulate_max_ratio: float = Field(
        settings.triangulate_max_ratio, ge=1.0, le=100.0,
        description="Max aspect ratio of merged solid blocks",
    )


class CaveGenerationRequest(ContourSettings):
    """Request to generate a new cave map."""

    width: int = Field(settings.default_map_width, ge=2, le=settings.max_map_width, description="Map width in tiles")
    height: int = Field(settings.default_map_height, ge=2, le=settings.max_map_height, description="Map height in tiles")
    seed: Optional[str] = Field(None, description="Random seed for reproducible generation")
    random_fill_percent: int = Field(45, ge=0, le=100, description="Initial solid fill percentage")
    smoothing: int = Field(5, ge=0, le=20, description="Cellular automaton passes")
    passage_width: int = Field(2, ge=0, le=10, description="Passage brush radius")
    upscale_filter: bool = Field(False, description="Double resolution with a gaussian filter")


class ContourRequest(ContourSettings):
    """Request to contour a hand made density grid."""

    rows: List[List[int]] = Field(..., description="Density rows listed top to bottom, values 0-255")


class MapResponse(BaseModel):
    """Contoured map ready for rendering and collision."""

    seed: Optional[str] = None
    width: int
    height: int
    cell_size: float
    world_min: List[float]
    vertices: List[List[float]]
    triangles: List[List[int]]
    outlines: List[List[int]]
    starting_point: Optional[List[float]] = None
    floor_segments: int = 0
    rooms: Optional[int] = None


def _map_response(cave_map: CaveMap, seed: Optional[str] = None,
                  rooms: Optional[int] = None) -> MapResponse:
    mesh = cave_map.mesh
    width, height = cave_map.density.shape
    return MapResponse(
        seed=seed,
        width=width,
        height=height,
        cell_size=cave_map.cell_size,
        world_min=cave_map.world_min.tolist(),
        vertices=mesh.vertices.tolist(),
        triangles=mesh.triangles.tolist(),
        outlines=[list(o) for o in mesh.outlines],
        starting_point=list(cave_map.starting_point) if cave_map.starting_point else None,
        floor_segments=len(cave_map.get_floor_segments(3)),
        rooms=rooms,
    )


# API endpoints
@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "message": "Cave Map API",
        "version": __version__,
        "status": "running"
    }


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy"}


@app.post("/maps/generate", response_model=MapResponse)
def generate_map(request: CaveGenerationRequest):
    """Generate a cave and return its mesh and outlines."""
    logger.info("Map generation requested", request=request.model_dump())

    try:
        generator = CaveGenerator(
            CaveOptions(
                seed=request.seed,
                random_fill_percent=request.random_fill_percent,
                smoothing=request.smoothing,
                passage_width=request.passage_width,
                upscale_filter=request.upscale_filter,
            )
        )
        builder = ContourBuilder(request.triangulate_mode, request.triangulate_max_ratio)
        cave_map = CaveMap(generator, request.width, request.height, builder=builder)
        cave_map.refresh(reload=True)
    except ValueError as e:
        logger.error("Map generation failed", error=str(e))
        raise HTTPException(status_code=400, detail=str(e))

    return _map_response(cave_map, seed=generator.seed, rooms=len(generator.rooms))


@app.post("/maps/contour", response_model=MapResponse)
def contour_map(request: ContourRequest):
    """Contour a supplied density grid."""
    logger.info("Contour requested", rows=len(request.rows))

    try:
        source = ArrayDensitySource.from_rows(request.rows)
        builder = ContourBuilder(request.triangulate_mode, request.triangulate_max_ratio)
        cave_map = CaveMap(source, builder=builder)
        cave_map.refresh(reload=True)
    except ValueError as e:
        logger.error("Contouring failed", error=str(e))
        raise HTTPException(status_code=400, detail=str(e))

    return _map_response(cave_map)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host=settings.api_host, port=settings.api_port)
