"""
CDP Auction CLI - Command line interface for the collateral auction house

Main entry point for all CLI commands.
"""

import click

from cdpauction.utils.logger import setup_logging, get_logger


@click.group()
@click.option("--debug", is_flag=True, help="Enable debug logging")
@click.option("--config", "config_path", default=None, type=click.Path(exists=True, dir_okay=False),
              help="TOML or JSON config file")
@click.option("--env-file", default=None, type=click.Path(dir_okay=False), help=".env file with overrides")
@click.version_option(version="0.1.0")
@click.pass_context
def cli(ctx, debug, config_path, env_file):
    """Collateral auction house - increasing-discount liquidation auctions"""
    import logging
    from cdpauction.core.config import load_config

    level = logging.DEBUG if debug else logging.WARNING
    setup_logging(level=level)

    ctx.ensure_object(dict)
    try:
        ctx.obj["config"] = load_config(config_path, env_file)
    except ValueError as e:
        raise click.ClickException(str(e))


# =============================================================================
# Pricing Commands
# =============================================================================


@cli.command("discount")
@click.option("--elapsed", default=3600, show_default=True, help="Seconds since auction start")
@click.option("--step", default=600, show_default=True, help="Seconds between rows")
@click.pass_context
def discount(ctx, elapsed, step):
    """Print the discount curve of the configured house"""
    from cdpauction.core.auction import Auction, get_auction_discount
    from cdpauction.core.fixed_point import RAY, format_fixed
    from cdpauction.crypto import ZERO_ADDRESS

    config = ctx.obj["config"]
    if step <= 0:
        raise click.BadParameter("step must be positive", param_hint="--step")

    # Any live record works: only the start time matters
    auction = Auction(1, RAY, 1, ZERO_ADDRESS, ZERO_ADDRESS)

    click.echo(f"Discount curve for {config.collateral_type}")
    click.echo(f"  min_discount = {format_fixed(config.min_discount)}")
    click.echo(f"  max_discount = {format_fixed(config.max_discount)}")
    click.echo(f"  rate         = {format_fixed(config.per_second_discount_update_rate, RAY, 27)}")
    click.echo()

    for seconds in range(0, elapsed + 1, step):
        value = get_auction_discount(
            auction,
            1 + seconds,
            config.min_discount,
            config.max_discount,
            config.per_second_discount_update_rate,
        )
        click.echo(f"  t+{seconds:>8}s  {format_fixed(value, places=18)}")


@cli.command("quote")
@click.option("--collateral-price", required=True, help="Collateral price in system coins")
@click.option("--redemption-price", default="1", show_default=True, help="Redemption price")
@click.option("--bid", required=True, help="Debt-token offered")
@click.option("--amount-to-sell", required=True, help="Collateral left in the auction")
@click.option("--amount-to-raise", required=True, help="Debt left to raise")
@click.option("--elapsed", default=0, show_default=True, help="Seconds since auction start")
@click.pass_context
def quote(ctx, collateral_price, redemption_price, bid, amount_to_sell, amount_to_raise, elapsed):
    """Quote a bid against a hypothetical auction"""
    from cdpauction.core.auction import (
        Auction,
        get_adjusted_bid,
        get_auction_discount,
        get_bought_collateral,
    )
    from cdpauction.core.errors import AuctionHouseError
    from cdpauction.core.fixed_point import RAY, format_fixed, multiply, to_ray, to_wad
    from cdpauction.crypto import ZERO_ADDRESS

    config = ctx.obj["config"]

    try:
        auction = Auction(
            to_wad(amount_to_sell),
            multiply(to_wad(amount_to_raise), RAY),
            1,
            ZERO_ADDRESS,
            ZERO_ADDRESS,
        )
        bid_wad = to_wad(bid)
        valid, adjusted_bid = get_adjusted_bid(auction, bid_wad, config.minimum_bid)
        if not valid:
            raise click.ClickException(
                f"Bid {bid} rejected (minimum bid {format_fixed(config.minimum_bid)}, or dusty remainder)"
            )

        value = get_auction_discount(
            auction,
            1 + elapsed,
            config.min_discount,
            config.max_discount,
            config.per_second_discount_update_rate,
        )
        bought, readjusted_bid = get_bought_collateral(
            to_wad(collateral_price),
            to_ray(redemption_price),
            auction.amount_to_sell,
            adjusted_bid,
            value,
        )
    except (AuctionHouseError, ArithmeticError, ValueError) as e:
        raise click.ClickException(str(e))

    click.echo(f"Discount:        {format_fixed(value)}")
    click.echo(f"Adjusted bid:    {format_fixed(adjusted_bid)}")
    click.echo(f"Bought:          {format_fixed(bought)} {config.collateral_type}")
    click.echo(f"Charged bid:     {format_fixed(readjusted_bid)}")


# =============================================================================
# Demo Command
# =============================================================================


@cli.command("demo")
@click.option("--collateral-price", default="200", show_default=True, help="Collateral oracle price")
@click.pass_context
def demo(ctx, collateral_price):
    """Run a scripted liquidation with partial fills"""
    from cdpauction.core.auction import CollateralAuctionHouse
    from cdpauction.core.errors import AuctionHouseError
    from cdpauction.core.fixed_point import RAD, RAY, WAD, format_fixed, to_wad
    from cdpauction.core.state import LiquidationEngine, OracleRelayer, PriceSource, SAFEEngine
    from cdpauction.crypto import address_from_label

    logger = get_logger("cli")
    config = ctx.obj["config"]
    clock = {"now": 1_700_000_000}

    click.echo("=" * 60)
    click.echo("  COLLATERAL AUCTION HOUSE - DEMO")
    click.echo("=" * 60)
    click.echo()

    # Setup
    click.echo("Initializing components...")
    governance = address_from_label("governance")
    treasury = address_from_label("accounting-engine")
    owner = address_from_label("safe-owner")
    keepers = [address_from_label("keeper-alice"), address_from_label("keeper-bob")]

    safe_engine = SAFEEngine()
    liquidation_engine = LiquidationEngine()
    oracle_relayer = OracleRelayer(clock=lambda: clock["now"])
    oracle_relayer.set_price_source(config.collateral_type, PriceSource(to_wad(collateral_price)))

    house = CollateralAuctionHouse(
        safe_engine, liquidation_engine, oracle_relayer, governance, config=config
    )
    house.events.subscribe(lambda event: logger.debug(f"Event: {event}"))
    click.echo(f"  Oracle price: {collateral_price} per {config.collateral_type}")
    click.echo(f"  Discount: {format_fixed(house.min_discount)} -> {format_fixed(house.max_discount)}")
    click.echo()

    # Liquidation
    lot = 10 * WAD
    debt = 1500 * WAD * RAY
    safe_engine.modify_collateral_balance(config.collateral_type, liquidation_engine.address, lot)
    for keeper in keepers:
        safe_engine.create_unbacked_debt(keeper, 1000 * RAD)

    try:
        auction_id = liquidation_engine.liquidate(house, owner, treasury, debt, lot, clock["now"])
        click.echo(f"Auction {auction_id} started: {format_fixed(lot)} {config.collateral_type} for "
                   f"{format_fixed(debt, RAD)} coins")

        # Partial fills
        for keeper, bid in zip(keepers, (600 * WAD, 1000 * WAD)):
            clock["now"] += 600
            if house.get_auction(auction_id) is None:
                break
            bought, paid = house.buy_collateral(auction_id, bid, sender=keeper, now=clock["now"])
            click.echo(f"  t+{clock['now'] - 1_700_000_000}s bid {format_fixed(bid)}: bought "
                       f"{format_fixed(bought)} for {format_fixed(paid)}")
    except AuctionHouseError as e:
        raise click.ClickException(f"{e.reason}: {e}")

    click.echo()
    click.echo("Events:")
    for event in house.events:
        click.echo(f"  {type(event).__name__}")

    click.echo()
    click.echo("Final balances:")
    for keeper in keepers:
        click.echo(f"  keeper {keeper.hex()[:8]}: "
                   f"{format_fixed(safe_engine.collateral_balance(config.collateral_type, keeper))} "
                   f"{config.collateral_type}, {format_fixed(safe_engine.coin_balance_of(keeper), RAD)} coins")
    click.echo(f"  owner leftover: "
               f"{format_fixed(safe_engine.collateral_balance(config.collateral_type, owner))} "
               f"{config.collateral_type}")
    click.echo(f"  treasury: {format_fixed(safe_engine.coin_balance_of(treasury), RAD)} coins")
    click.echo(f"  on auction: {format_fixed(liquidation_engine.current_on_auction_system_coins, RAD)}")
    click.echo(f"  house: {house.stats()}")


if __name__ == "__main__":
    cli()
