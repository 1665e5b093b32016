"""Command-line interface for composing receipt sections."""

import base64
import json
import logging
import sys
from collections import Counter
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import replace
from pathlib import Path
from typing import Any, Dict, List, Optional

import click
import yaml
from tqdm import tqdm

from .builder import ReceiptBuilder
from .codec import ReceiptCodecError, decode_element_dicts, to_base64
from .config import EmptyValuePolicy, EngineSettings
from .document.composer import CompositionError
from .document.rows import LayoutRegistry

logger = logging.getLogger(__name__)

EMPTY_VALUE_CHOICES = {
    'keep-token': EmptyValuePolicy.KEEP_TOKEN,
    'empty': EmptyValuePolicy.EMPTY_STRING,
}


def load_document(path: Path) -> Any:
    """Read a JSON file, or YAML for any other extension."""
    with open(path, 'r', encoding='utf-8') as f:
        if path.suffix.lower() == '.json':
            return json.load(f)
        return yaml.safe_load(f)


def load_settings(settings_path: Optional[Path], empty_values: Optional[str]) -> EngineSettings:
    settings = EngineSettings.from_file(settings_path) if settings_path else EngineSettings()
    if empty_values:
        settings = replace(settings, empty_value_policy=EMPTY_VALUE_CHOICES[empty_values])
    return settings


def render_output(elements: List[Dict[str, Any]], output_format: str) -> str:
    if output_format == 'base64':
        return to_base64(elements)
    return json.dumps(elements, ensure_ascii=False, indent=2)


class BatchComposer:
    """Compose one section for every data file in a directory."""

    def __init__(self,
                 registry: LayoutRegistry,
                 section: str,
                 settings: Optional[EngineSettings] = None,
                 max_workers: int = 4,
                 output_format: str = 'json'):
        """
        Initialize the batch composer.

        Args:
            registry: Loaded receipt sections
            section: Section to compose for each data file
            settings: Engine settings
            max_workers: Number of parallel workers
            output_format: 'json' or 'base64'
        """
        self.registry = registry
        self.section = section
        self.builder = ReceiptBuilder(settings)
        self.max_workers = max_workers
        self.output_format = output_format

        self.stats = {
            'total_files': 0,
            'composed': 0,
            'failed': 0,
            'warnings': 0,
        }

    def find_data_files(self, input_dir: Path) -> List[Path]:
        data_files = sorted(set(input_dir.glob('*.json')) | set(input_dir.glob('*.yml'))
                            | set(input_dir.glob('*.yaml')))
        logger.info(f"Found {len(data_files)} data files in {input_dir}")
        return data_files

    def output_names(self, data_files: List[Path]) -> Dict[Path, str]:
        """
        Pick an output file name for each data file.

        Files are named after their stem; when two inputs share a stem
        (``txn.json`` and ``txn.yml``) both keep their source extension.
        """
        suffix = '.b64' if self.output_format == 'base64' else '.json'
        stems = Counter(path.stem for path in data_files)
        return {
            path: f"{path.name if stems[path.stem] > 1 else path.stem}{suffix}"
            for path in data_files
        }

    def compose_file(self, data_path: Path, output_dir: Path,
                     output_name: Optional[str] = None) -> Dict[str, Any]:
        """Compose a single data file and write the result next to the others."""
        try:
            data = load_document(data_path)
            result = self.builder.build(self.section, self.registry, data)

            if output_name is None:
                output_name = self.output_names([data_path])[data_path]
            output_path = output_dir / output_name
            output_path.write_text(render_output(result.to_dicts(), self.output_format),
                                   encoding='utf-8')

            return {
                'file_path': str(data_path),
                'output_path': str(output_path),
                'elements': len(result.elements),
                'warnings': result.warnings,
            }

        except (OSError, ValueError, yaml.YAMLError, CompositionError) as e:
            logger.error(f"Failed to compose {data_path}: {e}")
            return {
                'file_path': str(data_path),
                'output_path': None,
                'elements': 0,
                'warnings': [],
                'error': str(e),
            }

    def compose_batch(self, input_dir: Path, output_dir: Path) -> List[Dict[str, Any]]:
        data_files = self.find_data_files(input_dir)
        self.stats['total_files'] = len(data_files)

        if not data_files:
            logger.warning("No data files found!")
            return []

        output_dir.mkdir(parents=True, exist_ok=True)
        output_names = self.output_names(data_files)
        results = []

        with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            future_to_file = {
                executor.submit(self.compose_file, data_file, output_dir,
                                output_names[data_file]): data_file
                for data_file in data_files
            }

            with tqdm(total=len(data_files), desc="Composing receipts") as pbar:
                for future in as_completed(future_to_file):
                    result = future.result()
                    results.append(result)

                    if result.get('error'):
                        self.stats['failed'] += 1
                    else:
                        self.stats['composed'] += 1
                    self.stats['warnings'] += len(result['warnings'])
                    pbar.update(1)

        results.sort(key=lambda r: r['file_path'])
        logger.info(f"Batch complete. Composed: {self.stats['composed']}, "
                    f"Failed: {self.stats['failed']}")
        return results


@click.group()
@click.option('--debug', is_flag=True, help='Enable debug logging')
def cli(debug: bool):
    """Receipt Composer - build printable receipt elements from layouts and data."""
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.WARNING,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[logging.StreamHandler(sys.stderr)]
    )


@cli.command()
@click.option('--config', 'config_path', required=True, type=click.Path(exists=True, path_type=Path),
              help='Receipt sections file (JSON or YAML)')
@click.option('--data', 'data_path', required=True, type=click.Path(exists=True, path_type=Path),
              help='Receipt data file (JSON or YAML)')
@click.option('--section', default='StoreCopy', help='Section to compose')
@click.option('--format', 'output_format', default='json', type=click.Choice(['json', 'base64']),
              help='Output encoding')
@click.option('--out', 'output_path', type=click.Path(path_type=Path),
              help='Write output to this file instead of stdout')
@click.option('--settings', 'settings_path', type=click.Path(exists=True, path_type=Path),
              help='Engine settings YAML file')
@click.option('--empty-values', type=click.Choice(list(EMPTY_VALUE_CHOICES)),
              help='What to print when a placeholder ends up empty')
def build(config_path: Path,
          data_path: Path,
          section: str,
          output_format: str,
          output_path: Optional[Path],
          settings_path: Optional[Path],
          empty_values: Optional[str]):
    """
    Compose one receipt section.

    Example:
        receipts build --config receipt-config.json --data receipt-data.json --section StoreCopy
    """
    try:
        settings = load_settings(settings_path, empty_values)
        registry = LayoutRegistry.from_file(config_path)
        data = load_document(data_path)

        result = ReceiptBuilder(settings).build(section, registry, data)
        for warning in result.warnings:
            click.echo(f"Warning: {warning}", err=True)

        output = render_output(result.to_dicts(), output_format)
        if output_path:
            output_path.parent.mkdir(parents=True, exist_ok=True)
            output_path.write_text(output, encoding='utf-8')
            click.echo(f"Wrote {len(result.elements)} elements to {output_path}", err=True)
        else:
            click.echo(output)

    except (OSError, ValueError, yaml.YAMLError, CompositionError, ReceiptCodecError) as e:
        logger.error(f"Composition failed: {e}")
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)


@cli.command()
@click.option('--config', 'config_path', required=True, type=click.Path(exists=True, path_type=Path),
              help='Receipt sections file (JSON or YAML)')
def sections(config_path: Path):
    """List the sections defined in a config file."""
    try:
        registry = LayoutRegistry.from_file(config_path)
    except (OSError, ValueError, yaml.YAMLError) as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    for name in registry.names():
        click.echo(f"{name} ({len(registry[name].rows)} rows)")


@cli.command()
@click.option('--config', 'config_path', required=True, type=click.Path(exists=True, path_type=Path),
              help='Receipt sections file (JSON or YAML)')
@click.option('--in', 'input_dir', required=True,
              type=click.Path(exists=True, file_okay=False, path_type=Path),
              help='Directory of receipt data files')
@click.option('--section', default='StoreCopy', help='Section to compose')
@click.option('--out', 'output_dir', required=True, type=click.Path(path_type=Path),
              help='Output directory')
@click.option('--format', 'output_format', default='json', type=click.Choice(['json', 'base64']),
              help='Output encoding')
@click.option('--settings', 'settings_path', type=click.Path(exists=True, path_type=Path),
              help='Engine settings YAML file')
@click.option('--max-workers', default=4, type=int, help='Maximum number of parallel workers')
def batch(config_path: Path,
          input_dir: Path,
          section: str,
          output_dir: Path,
          output_format: str,
          settings_path: Optional[Path],
          max_workers: int):
    """Compose a section for every data file in a directory."""
    try:
        settings = load_settings(settings_path, None)
        registry = LayoutRegistry.from_file(config_path)
    except (OSError, ValueError, yaml.YAMLError) as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    composer = BatchComposer(registry, section, settings=settings,
                             max_workers=max_workers, output_format=output_format)
    results = composer.compose_batch(input_dir, output_dir)

    click.echo("=" * 50)
    click.echo("COMPOSITION SUMMARY")
    click.echo("=" * 50)
    click.echo(f"Data files found: {composer.stats['total_files']}")
    click.echo(f"Composed: {composer.stats['composed']}")
    click.echo(f"Failed: {composer.stats['failed']}")
    click.echo(f"Warnings: {composer.stats['warnings']}")

    failed = [r for r in results if r.get('error')]
    for result in failed[:10]:
        click.echo(f"  - {Path(result['file_path']).name}: {result['error']}")
    if len(failed) > 10:
        click.echo(f"  ... and {len(failed) - 10} more")

    if failed:
        sys.exit(1)


@cli.command()
@click.option('--in', 'input_path', required=True, type=click.Path(exists=True, path_type=Path),
              help='Base64 text or raw binary receipt file')
def decode(input_path: Path):
    """Print the elements stored in an encoded receipt as JSON."""
    raw = input_path.read_bytes()
    try:
        if raw[:2] == b'RC':
            elements = decode_element_dicts(raw)
        else:
            elements = decode_element_dicts(base64.b64decode(raw.strip(), validate=True))
    except (ReceiptCodecError, ValueError) as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    click.echo(json.dumps(elements, ensure_ascii=False, indent=2))


if __name__ == '__main__':
    cli()
