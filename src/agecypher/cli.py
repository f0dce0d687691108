"""Command line interface for agecypher"""

import sys

import click
from rich.pretty import pprint

from agecypher.agtype import decode as decode_agtype
from agecypher.command import create_cypher_command
from agecypher.projection import generate_as_part
from agecypher.util.exceptions import MalformedValue


@click.group()
def main():
    """Entrypoint for the agecypher CLI"""


@main.command()
@click.argument("query")
def columns(query: str):
    """
    Print the column declaration for a Cypher query
    """
    click.echo(generate_as_part(query))


@main.command()
@click.argument("graph")
@click.argument("query")
@click.option("--params", default=None, help="Parameter map as an agtype literal")
def command(graph: str, query: str, params: str):
    """
    Print the SQL command that runs QUERY against GRAPH
    """
    parameters = None
    if params is not None:
        try:
            parameters = decode_agtype(params)
        except MalformedValue as e:
            raise click.BadParameter(e.message, param_hint="--params") from e
        if not isinstance(parameters, dict):
            raise click.BadParameter("must be a map literal", param_hint="--params")
    cypher_command = create_cypher_command(graph, query, parameters)
    click.echo(cypher_command.text)
    for parameter in cypher_command.parameters:
        click.echo(parameter)


@main.command()
@click.argument("literal")
def decode(literal: str):
    """
    Decode an agtype literal and pretty-print it
    """
    try:
        value = decode_agtype(literal)
    except MalformedValue as e:
        click.echo(f"Malformed agtype: {e.message}", err=True)
        sys.exit(1)
    pprint(value, expand_all=True)
