"""solgen backend emitters.

Backends turn a resolved ``ProjectCollection`` into native build files.

Quick usage::

    from solgen.generator import FileSet, Solution, create_generator

    generator = create_generator(config, Solution("engine", collection))
    files = FileSet()
    result = await generator.generate(files)
    await files.write_all()
"""

from solgen.config import Configuration
from solgen.errors import SolgenError
from solgen.generator.base import FileSet, Solution, SolutionGenerator, WriteResult
from solgen.generator.cmake_gen import CMakeSolutionGenerator
from solgen.generator.templates import TemplateRenderer

GENERATORS: dict[str, type[SolutionGenerator]] = {
    CMakeSolutionGenerator.name: CMakeSolutionGenerator,
}


def create_generator(config: Configuration, solution: Solution) -> SolutionGenerator:
    """Instantiate the backend named by ``config.generator``."""
    try:
        generator_cls = GENERATORS[config.generator]
    except KeyError:
        raise SolgenError(
            f"Unknown generator '{config.generator}' "
            f"(available: {', '.join(sorted(GENERATORS))})"
        ) from None
    return generator_cls(config, solution)


__all__ = [
    "GENERATORS",
    "create_generator",
    "CMakeSolutionGenerator",
    "FileSet",
    "Solution",
    "SolutionGenerator",
    "TemplateRenderer",
    "WriteResult",
]
