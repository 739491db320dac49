import pytest
import openpyxl
import sqlite3
import yaml
from click.testing import CliRunner
from ..src.cli.main import cli, load_config, validate_config, DEFAULT_CONFIG

@pytest.fixture
def runner():
    return CliRunner()

@pytest.fixture
def config_file(tmp_path):
    path = tmp_path / 'config.yaml'
    path.write_text(yaml.safe_dump(DEFAULT_CONFIG))
    return str(path)

@pytest.fixture
def results_csv(tmp_path):
    path = tmp_path / 'results.csv'
    path.write_text('detector_id,measurement\n1,x\n2,y\n')
    return str(path)

def test_column_name(runner):
    result = runner.invoke(cli, ['column-name', '1', '26', '27', '2600'])
    assert result.exit_code == 0
    assert result.output.splitlines() == ['1\tA', '26\tZ', '27\tAA', '2600\tCUZ']

def test_column_name_non_positive(runner):
    result = runner.invoke(cli, ['column-name', '--', '0', '-5'])
    assert result.exit_code == 0
    assert result.output.splitlines() == ['0\t-', '-5\t-']

def test_export_dry_run(runner, config_file, results_csv):
    """Test export command with --dry-run option."""
    result = runner.invoke(cli, [
        '--config', config_file,
        'export',
        '--csv', results_csv,
        '--container', 'test-sheet-id',
        '--dry-run'
    ])
    assert result.exit_code == 0, result.output
    assert 'DRY RUN MODE' in result.output
    assert 'A1:B3' in result.output
    assert 'Rows written: 2' in result.output

def test_export_to_xlsx(runner, config_file, results_csv, tmp_path):
    path = tmp_path / 'out.xlsx'
    result = runner.invoke(cli, [
        '--config', config_file,
        'export',
        '--csv', results_csv,
        '--type', 'xlsx',
        '--container', str(path),
        '--sheet', 'Bogons',
        '--header', 'detector_id=Detector',
    ])
    assert result.exit_code == 0, result.output

    sheet = openpyxl.load_workbook(path)['Bogons']
    assert [list(row) for row in sheet.iter_rows(values_only=True)] == [
        ['Detector', 'measurement'], [1, 'x'], [2, 'y']
    ]

def test_export_from_sqlite(runner, config_file, tmp_path):
    database = tmp_path / 'bogons.db'
    connection = sqlite3.connect(database)
    connection.execute('CREATE TABLE bogon_detections (detector_id INTEGER, measurement TEXT)')
    connection.execute("INSERT INTO bogon_detections VALUES (1, 'x')")
    connection.commit()
    connection.close()

    result = runner.invoke(cli, [
        '--config', config_file,
        'export',
        '--database', str(database),
        '--query', 'SELECT detector_id, measurement FROM bogon_detections',
        '--dry-run',
    ])
    assert result.exit_code == 0, result.output
    assert 'A1:B2' in result.output

def test_export_without_rows_writes_header_only(runner, config_file, tmp_path):
    database = tmp_path / 'empty.db'
    sqlite3.connect(database).close()
    path = tmp_path / 'out.xlsx'

    result = runner.invoke(cli, [
        '--config', config_file,
        'export',
        '--database', str(database),
        '--query', 'SELECT 1 AS detector_id WHERE 0',
        '--type', 'xlsx',
        '--container', str(path),
    ])
    assert result.exit_code == 0, result.output
    assert 'Range: A1:A1' in result.output
    sheet = openpyxl.load_workbook(path).worksheets[0]
    assert [list(row) for row in sheet.iter_rows(values_only=True)] == [['detector_id']]

def test_export_without_columns_fails(runner, config_file, tmp_path):
    path = tmp_path / 'empty.csv'
    path.write_text('\n')
    result = runner.invoke(cli, ['--config', config_file, 'export', '--csv', str(path), '--dry-run'])
    assert result.exit_code == 1
    assert 'has no columns' in result.output

def test_export_requires_source(runner, config_file):
    result = runner.invoke(cli, ['--config', config_file, 'export', '--dry-run'])
    assert result.exit_code != 0
    assert '--csv' in result.output

def test_export_unknown_type(runner, config_file, results_csv):
    result = runner.invoke(cli, ['--config', config_file, 'export', '--csv', results_csv, '--type', 'excel'])
    assert result.exit_code != 0
    assert "Unknown output type 'excel'" in result.output

def test_export_missing_sheet_without_creation(runner, config_file, results_csv, tmp_path):
    path = tmp_path / 'out.xlsx'
    openpyxl.Workbook().save(path)
    result = runner.invoke(cli, [
        '--config', config_file,
        'export',
        '--csv', results_csv,
        '--type', 'xlsx',
        '--container', str(path),
        '--sheet', 'Bogons',
        '--no-create-sheet',
    ])
    assert result.exit_code == 1
    assert 'Sheet Bogons not found' in result.output

def test_load_config_defaults_when_missing(tmp_path):
    config = load_config(str(tmp_path / 'missing.yaml'))
    assert config == DEFAULT_CONFIG
    assert config is not DEFAULT_CONFIG

def test_validate_config_fills_optional_values():
    config = validate_config({'google_sheets': {'credentials_file': 'c.json'}, 'output': {'type': 'xlsx'}})
    assert config['output']['create_missing_sheet'] is True
    assert config['output']['target_container'] is None
    assert config['google_sheets']['token_file'] == 'config/token.pickle'

def test_validate_config_rejects_wrong_types():
    with pytest.raises(TypeError):
        validate_config({'output': {'create_missing_sheet': 'yes'}})
    with pytest.raises(TypeError):
        validate_config({'output': 'sheets'})

def test_export_reports_hook_failure_once(runner, config_file, results_csv, tmp_path):
    result = runner.invoke(cli, [
        '--config', config_file,
        'export',
        '--csv', results_csv,
        '--type', 'xlsx',
        '--container', str(tmp_path / 'out.xlsx'),
        '--hook', 'no_such_module_for_querysheet:hook',
    ])
    assert result.exit_code == 0, result.output
    assert result.output.count("Couldn't resolve") == 1
    assert (tmp_path / 'out.xlsx').exists()
