# Overview: Flask CLI command groups for bootstrap, inspection, and stock maintenance.

# backend/smart_inventory/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask system init-db
#   Create all tables that do not exist yet (use `flask db upgrade` for migrations).
# - python -m flask system reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# Shop management (MULTI-TENANT):
# - python -m flask shops list
# - python -m flask shops create --name "Corner Store"
#
# Users:
# - python -m flask users create --shop-id 1 --email owner@shop.local --password "Password123!" --role owner
#
# Products and stock:
# - python -m flask products create --shop-id 1 --name "Widget" --price-cents 999 --stock 10
# - python -m flask stock adjust --shop-id 1 --product-id 1 --direction add --quantity 5 --reason "Restock"
# - python -m flask stock history --shop-id 1 --product-id 1 --limit 20

import click
from flask.cli import with_appcontext

from .errors import StockError
from .extensions import db
from .models.auth import VALID_ROLES
from .services import products_service, stock_service, tenant_service
from .services.auth_service import create_user, PasswordValidationError, UserCreationError
from .services.stock_movement_service import get_stock_history
from .services.stock_service import VALID_DIRECTIONS
from .validation import ConflictError, ValidationError, MAX_PRICE_CENTS


@click.group('system')
def system_group():
    """System bootstrap and repair commands."""


@system_group.command('init-db')
@with_appcontext
def init_db():
    """Create all tables (idempotent)."""
    db.create_all()
    click.echo("PASS Database tables created.")


@system_group.command('reset-db')
@click.option('--yes', is_flag=True, help='Skip confirmation')
@with_appcontext
def reset_db(yes):
    """
    DANGER: Drop all tables and recreate schema.

    This will DELETE ALL DATA!
    """
    if not yes:
        click.confirm("WARN This will DELETE ALL DATA. Are you sure?", abort=True)

    click.echo("DELETE  Dropping all tables...")
    db.drop_all()

    click.echo("BUILD  Creating all tables...")
    db.create_all()

    click.echo("PASS Database reset complete.")


@click.group('shops')
def shops_group():
    """Shop (tenant) management commands."""


@shops_group.command('list')
@with_appcontext
def list_shops_cli():
    """List all shops."""
    shops = tenant_service.list_shops()
    if not shops:
        click.echo("No shops found. Create one with 'flask shops create'.")
        return

    for shop in shops:
        owner = tenant_service.get_shop_owner_email(shop.id) or "-"
        click.echo(f"{shop.id:>4}  {shop.name:<30} owner: {owner}")


@shops_group.command('create')
@click.option('--name', required=True, help='Shop name')
@with_appcontext
def create_shop_cli(name):
    """Create a new shop (tenant)."""
    try:
        shop = tenant_service.create_shop(name)
    except ValueError as e:
        raise click.ClickException(str(e))
    click.echo(f"PASS Created shop: {shop.name} (ID: {shop.id})")


@click.group('users')
def users_group():
    """User bootstrap commands."""


@users_group.command('create')
@click.option('--shop-id', type=int, required=True, help='Shop ID')
@click.option('--email', prompt=True, help='Email address')
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True, help='Password')
@click.option('--role', type=click.Choice(sorted(VALID_ROLES)), prompt=True, help='Role')
@with_appcontext
def create_user_cli(shop_id, email, password, role):
    """
    Create a new user in a shop.

    The shop's owner is the recipient of stock alert emails.
    """
    try:
        user = create_user(shop_id=shop_id, email=email, password=password, role=role)
    except PasswordValidationError as e:
        raise click.ClickException(f"Password validation failed: {e}")
    except UserCreationError as e:
        raise click.ClickException(str(e))

    click.echo(f"PASS Created user: {user.email} with role '{user.role}' in shop {user.shop_id}")
    click.echo("SECURITY Password securely hashed with bcrypt")


@click.group('products')
def products_group():
    """Product bootstrap commands."""


@products_group.command('create')
@click.option('--shop-id', type=int, required=True, help='Shop ID')
@click.option('--name', required=True, help='Product name')
@click.option('--sku', default=None, help='SKU (generated from the name if omitted)')
@click.option('--price-cents', type=click.IntRange(0, MAX_PRICE_CENTS), default=0, help='Unit price in cents')
@click.option('--stock', type=click.IntRange(min=0), default=0, help='Initial stock quantity')
@click.option('--description', default=None, help='Description')
@with_appcontext
def create_product_cli(shop_id, name, sku, price_cents, stock, description):
    """Create a product; a positive --stock is recorded as an Initial Stock movement."""
    if tenant_service.get_shop(shop_id) is None:
        raise click.ClickException(f"Shop {shop_id} not found")

    patch = {"name": name, "price_cents": price_cents, "stock_quantity": stock}
    if sku:
        patch["sku"] = sku
    if description:
        patch["description"] = description

    try:
        product = products_service.create_product(shop_id=shop_id, patch=patch)
    except (ConflictError, ValidationError) as e:
        raise click.ClickException(str(e))

    click.echo(f"PASS Created product {product.sku}: {product.name} (ID: {product.id}, stock {product.stock_quantity})")


@click.group('stock')
def stock_group():
    """Stock adjustment and history commands."""


@stock_group.command('adjust')
@click.option('--shop-id', type=int, required=True, help='Shop ID')
@click.option('--product-id', type=int, required=True, help='Product ID')
@click.option('--direction', type=click.Choice(sorted(VALID_DIRECTIONS)), required=True)
@click.option('--quantity', type=int, required=True, help='Positive quantity')
@click.option('--reason', default=None, help='Reason (defaults to Restock/Sale)')
@click.option('--notes', default=None)
@with_appcontext
def adjust_stock_cli(shop_id, product_id, direction, quantity, reason, notes):
    """Apply a manual stock adjustment (attributed to no user)."""
    try:
        mutation = stock_service.adjust_stock(
            shop_id=shop_id,
            product_id=product_id,
            actor_user_id=None,
            direction=direction,
            quantity=quantity,
            reason=reason,
            notes=notes,
        )
    except StockError as e:
        raise click.ClickException(str(e))

    click.echo(
        f"PASS {mutation.product_name}: {mutation.previous_quantity} -> {mutation.new_quantity}"
    )
    for event in mutation.alerts_triggered:
        click.echo(f"ALERT {event}")


@stock_group.command('history')
@click.option('--shop-id', type=int, required=True, help='Shop ID')
@click.option('--product-id', type=int, required=True, help='Product ID')
@click.option('--limit', type=click.IntRange(1, 500), default=20)
@with_appcontext
def stock_history_cli(shop_id, product_id, limit):
    """Show newest-first stock movements for a product."""
    try:
        product = products_service.get_product(shop_id=shop_id, product_id=product_id)
    except StockError as e:
        raise click.ClickException(str(e))

    rows = get_stock_history(product_id, shop_id, limit=limit)
    click.echo(f"{product.sku} {product.name}: stock {product.stock_quantity}")
    if not rows:
        click.echo("  (no movements)")
        return

    for row in rows:
        actor = row["user_email"] or "system"
        click.echo(
            f"  {row['created_at']}  {row['quantity_change']:+6d}  {row['reason']:<20} {actor}"
        )


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(system_group)
    app.cli.add_command(shops_group)
    app.cli.add_command(users_group)
    app.cli.add_command(products_group)
    app.cli.add_command(stock_group)
