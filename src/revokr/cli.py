"""Command line interface for revokr."""

import logging
import sys
from pathlib import Path
from typing import Optional

import click

from . import __version__
from .config import RevokrConfig
from .core.diagnostics import Diagnostics
from .core.errors import OutputError, PreconditionError, RevokrError, SeparationOfDutiesError
from .core.files import (
    CRL_PEM_LABEL,
    TBS_PEM_LABEL,
    load_certificate,
    load_private_key,
    read_signature,
    read_tbs,
    write_digest,
    write_output,
)
from .core.models import BuildMode
from .core.times import parse_time
from .issuer.assemble import assemble_crl, verify_crl_signature
from .issuer.builder import CRLBuilder, resolve_crl_number
from .issuer.extract import extract_revocation_entries
from .issuer.serials import read_serials_file

logger = logging.getLogger("revokr.cli")

_path = click.Path(dir_okay=False, path_type=Path)


def _shared_options(f):
    """Options accepted by every sub-command."""
    options = [
        click.option(
            "--crt", "-c", type=_path,
            help="Path to the issuing certificate file.",
        ),
        click.option(
            "--out", "-o", type=_path,
            help="Output file path. PEM output goes to stdout if omitted.",
        ),
        click.option(
            "--pem/--der", default=None,
            help="Write PEM or DER. Defaults to DER unless the config sets pem.",
        ),
        click.option(
            "--config", "config_path", type=_path, envvar="REVOKR_CONFIG",
            help="YAML file with default option values.",
        ),
        click.option("--verbose", "-v", count=True, help="More log output (-vv for debug)."),
        click.option("--quiet", "-q", is_flag=True, default=False, help="Only log errors."),
    ]
    for option in reversed(options):
        f = option(f)
    return f


def _setup(config_path: Optional[Path], verbose: int, quiet: bool) -> RevokrConfig:
    config = RevokrConfig.from_file(config_path) if config_path else RevokrConfig()

    if quiet:
        level = logging.ERROR
    elif verbose >= 2:
        level = logging.DEBUG
    elif verbose == 1:
        level = logging.INFO
    else:
        level = config.logging_level

    logging.basicConfig(
        level=level,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
        force=True,
    )
    return config


@click.group()
@click.version_option(__version__, prog_name="revokr")
def main():
    """A tool for assisting in the management of certificate revocation lists."""


@main.command()
@_shared_options
@click.option(
    "--number", "-n",
    help="CRL number to use (decimal). Defaults to 1, or the highest number "
    "found in extended CRLs plus one.",
)
@click.option(
    "--extend", "-x", multiple=True, type=_path,
    help="Existing CRL to copy and extend. Repeatable.",
)
@click.option("--key", "-k", type=_path, help="Path to the issuing certificate private key.")
@click.option("--password", "-p", help="Password for an encrypted private key.")
@click.option(
    "--password-prompt", "-P", is_flag=True, default=False,
    help="Prompt for the private key password (overrides --password).",
)
@click.option("--serials", "-s", type=_path, help="File of hex serial numbers to revoke.")
@click.option("--ignore", "-i", type=_path, help="File of hex serial numbers to leave out.")
@click.option(
    "--this-update", "-T",
    help="ThisUpdate time. Defaults to the issuing certificate's NotBefore.",
)
@click.option(
    "--next-update", "-N",
    help="NextUpdate time. Defaults to the issuing certificate's NotAfter.",
)
@click.option(
    "--to-be-signed", "-t", is_flag=True, default=False,
    help="Write the unsigned TBS portion of the CRL instead of a signed CRL.",
)
@click.option("--digest", "-d", type=_path, help="Target file for the TBS digest.")
def create(
    crt, out, pem, config_path, verbose, quiet,
    number, extend, key, password, password_prompt,
    serials, ignore, this_update, next_update, to_be_signed, digest,
):
    """Create a new CRL or extend existing CRLs with more revocation entries."""
    try:
        config = _setup(config_path, verbose, quiet)
        _create(
            crt=config.pick("crt", crt),
            out=config.pick("out", out),
            pem=config.pick("pem", pem),
            number=number,
            extend=config.pick("extend", extend),
            key=key if key or to_be_signed else config.key,
            password=password,
            password_prompt=password_prompt,
            serials=config.pick("serials", serials),
            ignore=config.pick("ignore", ignore),
            this_update=this_update,
            next_update=next_update,
            to_be_signed=to_be_signed,
            digest=config.pick("digest", digest),
        )
    except RevokrError as e:
        raise click.ClickException(str(e))


def _create(*, crt, out, pem, number, extend, key, password,
            password_prompt, serials, ignore, this_update, next_update,
            to_be_signed, digest):
    diagnostics = Diagnostics(logger)
    mode = BuildMode.TBS if to_be_signed else BuildMode.SIGNED

    if to_be_signed and not digest:
        raise PreconditionError("target digest path must be specified when creating a TBS CRL")
    if not out and not pem:
        raise OutputError("output path must be specified when outputting DER format")

    include_serials = read_serials_file(serials, diagnostics)
    ignore_serials = read_serials_file(ignore, diagnostics)

    if to_be_signed and key:
        raise SeparationOfDutiesError("issuer private key should not be specified when creating a TBS CRL")
    if not crt:
        raise PreconditionError("issuer certificate path must be specified with --crt/-c")
    if not to_be_signed and not key:
        raise PreconditionError("issuer private key path must be specified with --key/-k")

    issuer = load_certificate(crt)

    if to_be_signed and (password or password_prompt):
        raise SeparationOfDutiesError("password should not be specified when creating a TBS CRL")

    signer = None
    if not to_be_signed:
        if password_prompt:
            password = click.prompt(
                "Enter the private key password", hide_input=True, err=True
            )
        signer = load_private_key(key, password, diagnostics)

    # fail on bad values before reading prior CRLs
    this_update = parse_time(this_update)
    next_update = parse_time(next_update)
    resolve_crl_number(None, number)

    builder = CRLBuilder(issuer, signer=signer, mode=mode, diagnostics=diagnostics)
    extracted = extract_revocation_entries(ignore_serials, extend, diagnostics)

    artifact = builder.build(
        include_serials=include_serials,
        ignore_serials=ignore_serials,
        merged_entries=extracted.entries,
        resolved_number=extracted.crl_number,
        explicit_number=number,
        this_update=this_update,
        next_update=next_update,
    )

    if artifact.is_signed:
        write_output(artifact.der, out, as_pem=pem, label=CRL_PEM_LABEL)
    else:
        write_digest(artifact.digest, digest, as_pem=pem)
        write_output(artifact.der, out, as_pem=pem, label=TBS_PEM_LABEL)


@main.command()
@_shared_options
@click.option(
    "--to-be-signed", "-t", "tbs_path", type=_path,
    help="The TBS CRL file to assemble the final CRL from.",
)
@click.option(
    "--signature", "-s", "signature_path", type=_path,
    help="The signature file (raw or base64) made over the TBS CRL.",
)
def assemble(crt, out, pem, config_path, verbose, quiet, tbs_path, signature_path):
    """Assemble a CRL from the issuing certificate, a TBS CRL and a signature."""
    try:
        config = _setup(config_path, verbose, quiet)
        _assemble(
            crt=config.pick("crt", crt),
            out=config.pick("out", out),
            pem=config.pick("pem", pem),
            tbs_path=tbs_path,
            signature_path=signature_path,
        )
    except RevokrError as e:
        raise click.ClickException(str(e))


def _assemble(*, crt, out, pem, tbs_path, signature_path):
    diagnostics = Diagnostics(logger)

    if not tbs_path:
        raise PreconditionError("TBS CRL path must be specified with --to-be-signed/-t")
    if not signature_path:
        raise PreconditionError("signature path must be specified with --signature/-s")
    if not crt:
        raise PreconditionError("issuer certificate path must be specified with --crt/-c")
    if not out and not pem:
        raise OutputError("output path must be specified when outputting DER format")

    tbs = read_tbs(tbs_path)
    signature = read_signature(signature_path, diagnostics)
    issuer = load_certificate(crt)

    der = assemble_crl(issuer, tbs, signature, diagnostics)
    if not verify_crl_signature(der, issuer):
        diagnostics.warning(
            "assembled CRL signature does not verify against the issuer certificate",
            signature=str(signature_path),
        )

    write_output(der, out, as_pem=pem, label=CRL_PEM_LABEL)
