"""
Basic usage example of the wine simulation library.
This example demonstrates core functionality including:
- Configuring a game
- Planting, harvesting and fermenting
- Aging, bottling and selling
- Event handling and saving
"""

from pathlib import Path

from winesim import Winery, SaveStore
from winesim.config import GameConfig, EconomyConfig, AgingConfig, MonitoringConfig
from winesim.events import Event, EventType


def print_event(event: Event) -> None:
    """Print the event details."""
    print(f"\nEvent received: {event.type.name} on day {event.day}")
    if event.details:
        print("Details:", event.details)


def main():
    # Create basic configuration
    config = GameConfig(
        name="Basic Estate Example",
        economy=EconomyConfig(starting_cash=100000),
        aging=AgingConfig(barrel_volume_l=1000),  # one barrel per tank batch
        monitoring=MonitoringConfig(log_level="WARNING"),
    )

    winery = Winery(config)
    for event_type in (EventType.HARVEST, EventType.WHOLESALE, EventType.BOTTLED,
                       EventType.REVIEW, EventType.SALE):
        winery.events.subscribe(event_type, print_event)

    print("Starting a new estate...")
    print(f"Name: {config.name}")
    print(f"Cash: {winery.cash}")

    # Equip the cellar
    winery.plant(0, "Pinot Noir")
    winery.plant(1, "Chardonnay")
    winery.buy_tank(1000)
    winery.buy_tank(1000)
    winery.buy_barrel()
    winery.buy_barrel()
    winery.buy_bottling_equipment()
    print(f"\nCash after setup: {winery.cash}")

    # Grow until each plot is ready, harvesting as soon as it is
    print("\nGrowing...")
    tanks = {}
    while len(tanks) < 2 and winery.day < 2 * config.time.days_per_year:
        winery.simulate_one_day()
        for plot in (0, 1):
            if plot not in tanks and winery.vineyard.can_harvest(plot):
                result = winery.harvest(plot)
                if result.tank_id is not None:
                    tanks[plot] = result.tank_id
                elif result.harvested:
                    tanks[plot] = None

    weather = winery.scheduler.today
    if weather is not None:
        print(f"\nDay {winery.day}: {weather.t_avg_c:.1f} C, {weather.rain_mm:.1f} mm rain")

    # Ferment, then move to oak
    winery.simulate_days(20)
    for tank_id in tanks.values():
        if tank_id is not None and winery.rack_to_barrel(tank_id):
            print(f"Racked tank {tank_id[:8]} to a barrel")

    # Age inside the sweet spot, then bottle
    winery.simulate_days(110)
    for barrel in winery.production.barrel_snapshot():
        wine = winery.bottle(barrel.id)
        if wine is not None:
            print(f"Bottled {wine.bottles} x {wine.variety} at quality {wine.initial_quality:.1f}")

    print("\nCellar:")
    for entry in winery.inventory.entries():
        price = winery.market.price_for(entry.quality, entry.variety, entry.is_red)
        print(f"  {entry.id}: {entry.bottles} bottles, quality {entry.quality:.1f}, {price} each")

    for entry in winery.inventory.entries():
        sale = winery.sell(entry.variety, entry.vintage_year, min(60, entry.bottles))
        print(f"Sold {sale.units_sold} x {entry.variety} for {sale.revenue}")

    winery.simulate_one_day()
    summary = winery.stats.summary()
    print(f"\nCash: {winery.cash}")
    print(f"Market index: {winery.market.market_index:.3f}")
    print(f"Brand level: {winery.market.brand_level:.3f}")
    print(f"Revenue over {len(winery.stats)} tracked days: {summary['revenue']['total']:.0f}")

    store = SaveStore(Path("basic_estate_save.json"))
    if winery.save(store):
        print(f"\nSaved to {store.path}")

    print("\nBasic usage demonstration completed!")


if __name__ == "__main__":
    main()
