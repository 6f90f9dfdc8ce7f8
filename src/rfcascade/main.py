from __future__ import annotations
import logging, pathlib, time
from enum import Enum
from typing import Any, Dict, Optional
import typer
from pydantic import ValidationError
from rich import print as rprint
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from . import settings
from .core.errors import RFCascadeError
from .core.units import compute_conversion
from .schema import CascadeConfig, DbToDbm, DbmToWatts, WattsToDbm, WattsToDb
from .session import CascadeSession

app = typer.Typer(help="Calculadora de cascada RF: ganancia, NF, P1dB, IP3, SFDR y conversiones de potencia.")
logger = logging.getLogger(__name__)


class Kind(str, Enum):
    db_to_dbm = "db-to-dbm"
    dbm_to_watts = "dbm-to-watts"
    watts_to_dbm = "watts-to-dbm"
    watts_to_db = "watts-to-db"

# ------------------------- util -------------------------

def _setup_logging(level: str) -> None:
    logging.basicConfig(
        level=level.upper(),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), rich_tracebacks=True)],
        force=True,
    )

def _fail(msg: str) -> None:
    rprint(f"[bold red]Error[/bold red]: {msg}")
    raise typer.Exit(code=1)

def _load(config: str) -> CascadeConfig:
    from .io import load_config
    try:
        return load_config(config)
    except FileNotFoundError:
        _fail(f"no existe el archivo [cyan]{config}[/cyan]")
    except ValidationError as e:
        _fail(f"configuración inválida en {config}:\n{escape(str(e))}")

def _stages_table(session: CascadeSession) -> Table:
    t = Table(title="Etapas")
    for col in ("#", "Nombre", "G [dB]", "NF [dB]", "P1dB [dBm]", "IP3 [dBm]"):
        t.add_column(col, justify="left" if col == "Nombre" else "right")
    for i, s in enumerate(session.stages, start=1):
        t.add_row(str(i), s.name, f"{s.gain_db:g}", f"{s.noise_figure_db:g}", f"{s.p1db_dbm:g}", f"{s.ip3_dbm:g}")
    return t

def _result_table(res) -> Table:
    t = Table(title="Resultados")
    t.add_column("Métrica")
    t.add_column("Valor", justify="right")
    t.add_row("Ganancia total", f"{res.total_gain_db:.2f} dB")
    t.add_row("NF en cascada (Friis)", f"{res.total_noise_figure_db:.2f} dB")
    t.add_row("P1dB (entrada)", f"{res.total_p1db_dbm:.2f} dBm")
    t.add_row("IP3 (entrada)", f"{res.total_ip3_dbm:.2f} dBm")
    t.add_row("SFDR (pendiente 2/3)", f"{res.sfdr_db:.2f} dB")
    return t

def build_conversion(kind: Kind, value: float, reference: Optional[float]):
    if kind is Kind.db_to_dbm:
        return DbToDbm(db=value, reference_dbm=0.0 if reference is None else reference)
    if kind is Kind.dbm_to_watts:
        return DbmToWatts(dbm=value)
    if kind is Kind.watts_to_dbm:
        return WattsToDbm(watts=value)
    if reference is None:
        raise typer.BadParameter("watts-to-db necesita --reference (W)")
    return WattsToDb(watts=value, reference_watts=reference)

# ------------------------- CLI -------------------------

@app.callback()
def main(
    log_level: str = typer.Option(settings.LOG_LEVEL, help="Nivel de log (DEBUG, INFO, WARNING...)."),
):
    _setup_logging(log_level)

@app.command("cascade")
def cascade(
    config: str = typer.Argument(..., help="Ruta a archivo JSON con la cadena."),
    outdir: str = typer.Option(settings.OUTDIR, help="Carpeta para logs JSON."),
    plots_dir: str = typer.Option(settings.PLOTS_DIR, help="Carpeta para gráficas."),
    plots: bool = typer.Option(True, help="Guardar perfil por etapa (PNG + HTML)."),
):
    cfg = _load(config)
    logger.debug("Config %s: %d etapas", config, len(cfg.stages))
    session = CascadeSession.from_config(cfg)

    t0 = time.time()
    try:
        res = session.calculate()
    except RFCascadeError as e:
        _fail(escape(str(e)))
    elapsed = time.time() - t0

    console = Console()
    console.print(_stages_table(session))
    if res is None:
        rprint("[yellow]Cadena vacía[/yellow]: no hay resultado que calcular.")
    else:
        console.print(_result_table(res))

    from .io import runlog_name, write_runlog
    outdir_p = pathlib.Path(outdir)
    log_path = outdir_p / runlog_name()
    result: Dict[str, Any] | None = None if res is None else {**res.model_dump(), "elapsed_s": elapsed}
    write_runlog(log_path, cfg, result)

    if plots and res is not None:
        from .core.cascade import cascade_profile
        from .analysis.plots import save_profile_png, save_profile_html
        profile = cascade_profile(session.stages)
        plots_p = pathlib.Path(plots_dir)
        save_profile_png(profile, plots_p / "perfil.png")
        save_profile_html(profile, plots_p / "perfil.html")

    rprint(f"[bold green]Listo[/bold green]: log en [cyan]{log_path}[/cyan].")

@app.command("convert")
def convert(
    kind: Kind = typer.Argument(..., help="Tipo de conversión."),
    value: float = typer.Argument(..., help="Valor de entrada (dB, dBm o W según el tipo)."),
    reference: Optional[float] = typer.Option(None, help="Referencia: dBm para db-to-dbm, W para watts-to-db."),
):
    try:
        conv = build_conversion(kind, value, reference)
    except ValidationError as e:
        _fail(f"valor no válido:\n{escape(str(e))}")
    try:
        res = compute_conversion(conv)
    except RFCascadeError as e:
        _fail(escape(str(e)))

    if kind is Kind.dbm_to_watts:
        from .analysis.report import format_watts
        rprint(f"{value:g} dBm = [bold]{format_watts(res, w_decimals=3)}[/bold] ({res:.6e} W)")
    elif kind is Kind.watts_to_db:
        rprint(f"{value:g} W / {reference:g} W = [bold]{res:.2f} dB[/bold]")
    elif kind is Kind.db_to_dbm:
        rprint(f"{value:g} dB + {conv.reference_dbm:g} dBm = [bold]{res:.2f} dBm[/bold]")
    else:
        rprint(f"{value:g} W = [bold]{res:.2f} dBm[/bold]")

@app.command("report")
def report(
    config: str = typer.Argument(..., help="Ruta a archivo JSON con la cadena."),
    out: Optional[str] = typer.Option(None, help="Ruta del PDF (por defecto RF_Cascade_Results_<fecha>.pdf)."),
):
    from .analysis.report import build_report_lines, default_report_name, save_report_pdf
    cfg = _load(config)
    session = CascadeSession.from_config(cfg)
    try:
        session.calculate()
        # las cuatro variantes, con las que falten ya completadas por la sesión
        conversions = list(session.conversions.values())
        lines = build_report_lines(session.stages, session.result, conversions)
        out_pdf = save_report_pdf(session.stages, session.result, conversions,
                                  pathlib.Path(out or default_report_name()))
    except RFCascadeError as e:
        _fail(escape(str(e)))

    for line in lines:
        typer.echo(line)
    rprint(f"[bold green]Informe[/bold green] en [cyan]{out_pdf}[/cyan]")

@app.command("sweep")
def sweep(
    config: str = typer.Argument(..., help="Ruta a archivo JSON con la cadena."),
    stage: int = typer.Option(0, help="Índice (0-based) de la etapa a barrer."),
    field: str = typer.Option("gain_db", help="Campo: gain_db, noise_figure_db, p1db_dbm o ip3_dbm."),
    start: float = typer.Option(0.0, help="Inicio del barrido."),
    stop: float = typer.Option(30.0, help="Fin del barrido."),
    num: int = typer.Option(16, min=2, help="Número de puntos."),
    out: str = typer.Option("plots/sweep.png", help="PNG de salida."),
):
    import numpy as np
    from .tools.sweep import sweep_stage_field, save_sweep_png
    cfg = _load(config)
    try:
        data = sweep_stage_field(cfg, stage, field, np.linspace(start, stop, num))
    except (ValueError, IndexError) as e:
        _fail(escape(str(e)))
    save_sweep_png(data, field, cfg.stages[stage].name, out)
    best = int(np.argmax(data["sfdr_db"]))
    rprint(f"SFDR máximo {data['sfdr_db'][best]:.2f} dB con {field} = {data['grid'][best]:g}")
    rprint(f"[bold green]Listo[/bold green]: barrido en [cyan]{out}[/cyan].")

if __name__ == "__main__":
    app()
