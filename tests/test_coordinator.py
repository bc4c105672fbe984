"""Tests for the Hyundai / Kia coordinator."""

import asyncio
from collections.abc import Callable, Coroutine
from dataclasses import asdict, replace
from datetime import timedelta
from typing import Any
from unittest.mock import AsyncMock, Mock, patch

import httpx
import pytest
from homeassistant.const import (
    CONF_LATITUDE,
    CONF_LONGITUDE,
    CONF_PASSWORD,
    CONF_USERNAME,
)
from homeassistant.exceptions import HomeAssistantError
from homeassistant.helpers.update_coordinator import UpdateFailed

from custom_components.hyundai_kia.api import ClimateOptions, HyundaiKiaApiClientError
from custom_components.hyundai_kia.const import (
    ATTR_TRIGGER_TYPE,
    CONF_ABRP_TOKEN,
    CONF_BATTERY_ALARM_LEVEL,
    CONF_BRAND,
    CONF_EV_BATTERY_ALARM_LEVEL,
    CONF_PIN,
    CONF_POLL_INTERVAL,
    CONF_POLL_INTERVAL_FORCED,
    CONF_REGION,
    CONF_VIN,
    EVENT_VEHICLE_TRIGGER,
    RESTART_DELAY,
    STORE_SAVE_DELAY,
    WATCHDOG_BUDGET,
)
from custom_components.hyundai_kia.coordinator import (
    HyundaiKiaCoordinator,
    create_view_store,
    thresholds_from_entry,
)
from custom_components.hyundai_kia.models import (
    Odometer,
    VehicleLocation,
    VehicleStatus,
    VehicleView,
)
from custom_components.hyundai_kia.telemetry import AbrpTelemetryError

VIN = "KMHK381GFMU000001"


@pytest.fixture
def mock_hass() -> Mock:
    """Create a mock Home Assistant instance."""
    hass = Mock()
    hass.config.latitude = 50.0
    hass.config.longitude = 5.0
    hass.bus = Mock()
    return hass


@pytest.fixture
def mock_session() -> Mock:
    """Create a mock HTTP session."""
    return Mock(spec=httpx.AsyncClient)


@pytest.fixture
def config_entry_options() -> dict[str, Any]:
    """Create config entry options for testing."""
    return {
        CONF_POLL_INTERVAL: 10,
        CONF_POLL_INTERVAL_FORCED: 0,
        CONF_BATTERY_ALARM_LEVEL: 70,
        CONF_EV_BATTERY_ALARM_LEVEL: 20,
        CONF_LATITUDE: 52.0,
        CONF_LONGITUDE: 4.0,
        CONF_ABRP_TOKEN: "",
    }


@pytest.fixture
def background_tasks() -> list[asyncio.Task]:
    """Collect the background tasks registered with the config entry."""
    return []


@pytest.fixture
def mock_config_entry(
    config_entry_options: dict[str, Any],
    background_tasks: list[asyncio.Task],
) -> Mock:
    """Create a mock config entry for testing."""

    def create_background_task(
        _hass: Mock, target: Coroutine[Any, Any, Any], name: str
    ) -> asyncio.Task:
        task = asyncio.get_running_loop().create_task(target, name=name)
        background_tasks.append(task)
        return task

    entry = Mock()
    entry.async_create_background_task = Mock(side_effect=create_background_task)
    entry.data = {
        CONF_USERNAME: "driver@example.com",
        CONF_PASSWORD: "password123",
        CONF_PIN: "1234",
        CONF_REGION: "1",
        CONF_BRAND: "2",
        CONF_VIN: VIN,
    }
    entry.options = config_entry_options
    entry.entry_id = "test_entry_id"
    entry.title = "My Kona"
    return entry


@pytest.fixture
def mock_store() -> Mock:
    """Create a mock store holding no view."""
    store = Mock()
    store.async_load = AsyncMock(return_value=None)
    store.async_save = AsyncMock()
    return store


@pytest.fixture
def mock_client(
    status_factory: Callable[..., VehicleStatus],
    sample_location: VehicleLocation,
    sample_odometer: Odometer,
) -> AsyncMock:
    """Create a mock vehicle client returning an idle car."""
    client = AsyncMock()
    client.async_status.return_value = status_factory()
    client.async_location.return_value = sample_location
    client.async_odometer.return_value = sample_odometer
    return client


@pytest.fixture
def coordinator(
    mock_hass: Mock,
    mock_config_entry: Mock,
    mock_session: Mock,
    mock_client: AsyncMock,
) -> HyundaiKiaCoordinator:
    """Create a coordinator with a mocked client and geocoder."""
    coordinator = HyundaiKiaCoordinator(
        mock_hass,
        mock_config_entry,
        mock_session,
        client_factory=AsyncMock(return_value=mock_client),
    )
    coordinator._geocoder = AsyncMock()
    coordinator._geocoder.async_get_location_name.return_value = "Home"
    return coordinator


class TestThresholdsFromEntry:
    """Tests for thresholds_from_entry."""

    def test_thresholds_from_options(
        self, mock_hass: Mock, mock_config_entry: Mock
    ) -> None:
        """Test that thresholds are read from the entry options."""
        thresholds = thresholds_from_entry(mock_hass, mock_config_entry)
        assert thresholds.poll_interval == 10
        assert thresholds.poll_interval_forced is None
        assert thresholds.battery_alarm_level == 70
        assert thresholds.latitude == 52.0
        assert thresholds.longitude == 4.0

    def test_thresholds_default_home_location(
        self, mock_hass: Mock, mock_config_entry: Mock
    ) -> None:
        """Test that the home location defaults to the Home Assistant one."""
        del mock_config_entry.options[CONF_LATITUDE]
        del mock_config_entry.options[CONF_LONGITUDE]
        mock_config_entry.options[CONF_POLL_INTERVAL_FORCED] = 60
        thresholds = thresholds_from_entry(mock_hass, mock_config_entry)
        assert thresholds.latitude == 50.0
        assert thresholds.longitude == 5.0
        assert thresholds.poll_interval_forced == 60


class TestHyundaiKiaCoordinatorInit:
    """Tests for HyundaiKiaCoordinator initialization."""

    def test_init_sets_vin_and_state(self, coordinator: HyundaiKiaCoordinator) -> None:
        """Test that init sets the VIN and a fresh poll state."""
        assert coordinator.vin == VIN
        assert coordinator.data is None
        assert coordinator.client is None
        assert coordinator.update_interval is None
        assert coordinator.state.watchdog_counter == WATCHDOG_BUDGET
        assert coordinator._telemetry is None

    def test_init_enables_abrp_with_token(
        self,
        mock_hass: Mock,
        mock_config_entry: Mock,
        mock_session: Mock,
    ) -> None:
        """Test that a configured ABRP token enables telemetry."""
        mock_config_entry.options[CONF_ABRP_TOKEN] = "abcdef-1234"
        coordinator = HyundaiKiaCoordinator(
            mock_hass, mock_config_entry, mock_session
        )
        assert coordinator._telemetry is not None


class TestHyundaiKiaCoordinatorAsyncUpdateData:
    """Tests for _async_update_data method."""

    @pytest.mark.asyncio
    async def test_first_poll_publishes_view(
        self,
        coordinator: HyundaiKiaCoordinator,
        mock_client: AsyncMock,
        mock_hass: Mock,
    ) -> None:
        """Test that the first poll connects and publishes a view."""
        view = await coordinator._async_update_data()

        coordinator._client_factory.assert_awaited_once()
        mock_client.async_status.assert_awaited_once_with(refresh=True)
        assert isinstance(view, VehicleView)
        assert view.location == "Home"
        assert view.live_data is True
        assert coordinator.state.busy is False
        assert coordinator.state.watchdog_counter == WATCHDOG_BUDGET
        mock_hass.bus.async_fire.assert_not_called()

    @pytest.mark.asyncio
    async def test_busy_poll_is_skipped(
        self,
        coordinator: HyundaiKiaCoordinator,
        sample_view: VehicleView,
    ) -> None:
        """Test that a poll during a running cycle is skipped."""
        coordinator.data = sample_view
        coordinator.state.busy = True

        result = await coordinator._async_update_data()

        assert result is sample_view
        coordinator._client_factory.assert_not_awaited()
        assert coordinator.state.watchdog_counter == WATCHDOG_BUDGET - 1

    @pytest.mark.asyncio
    async def test_empty_watchdog_restarts_session(
        self,
        coordinator: HyundaiKiaCoordinator,
        mock_hass: Mock,
        sample_view: VehicleView,
    ) -> None:
        """Test that an empty watchdog budget restarts instead of polling."""
        coordinator.data = sample_view
        coordinator.state.busy = True
        coordinator.state.watchdog_counter = 0

        with patch(
            "custom_components.hyundai_kia.coordinator.async_call_later"
        ) as mock_call_later:
            result = await coordinator._async_update_data()

        assert result is sample_view
        coordinator._client_factory.assert_not_awaited()
        mock_call_later.assert_called_once_with(
            mock_hass, RESTART_DELAY, coordinator._async_resume
        )
        assert coordinator.state.watchdog_counter == WATCHDOG_BUDGET
        assert coordinator.state.busy is False
        assert coordinator.update_interval is None

    @pytest.mark.asyncio
    async def test_client_error_raises_update_failed(
        self,
        coordinator: HyundaiKiaCoordinator,
    ) -> None:
        """Test that a vendor error fails the update and spends budget."""
        coordinator._client_factory.side_effect = HyundaiKiaApiClientError(
            "unreachable"
        )

        with pytest.raises(UpdateFailed, match="unreachable"):
            await coordinator._async_update_data()

        assert coordinator.state.watchdog_counter == WATCHDOG_BUDGET - 1
        assert coordinator.state.busy is False

    @pytest.mark.asyncio
    async def test_unexpected_error_raises_update_failed(
        self,
        coordinator: HyundaiKiaCoordinator,
        mock_client: AsyncMock,
    ) -> None:
        """Test that an unexpected error is also turned into UpdateFailed."""
        mock_client.async_login.side_effect = RuntimeError("bug")

        with pytest.raises(UpdateFailed, match="bug"):
            await coordinator._async_update_data()

        assert coordinator.state.busy is False

    @pytest.mark.asyncio
    async def test_success_refills_watchdog(
        self,
        coordinator: HyundaiKiaCoordinator,
    ) -> None:
        """Test that a successful poll refills the watchdog budget."""
        coordinator.state.watchdog_counter = 2

        await coordinator._async_update_data()

        assert coordinator.state.watchdog_counter == WATCHDOG_BUDGET

    @pytest.mark.asyncio
    async def test_transition_fires_trigger_once(
        self,
        coordinator: HyundaiKiaCoordinator,
        mock_client: AsyncMock,
        mock_hass: Mock,
        sample_view: VehicleView,
        status_factory: Callable[..., VehicleStatus],
    ) -> None:
        """Test that an engine start fires exactly one engine_true event."""
        coordinator.data = sample_view
        mock_client.async_status.return_value = status_factory(engine=True)

        view = await coordinator._async_update_data()

        assert view.engine is True
        mock_hass.bus.async_fire.assert_called_once_with(
            EVENT_VEHICLE_TRIGGER,
            {CONF_VIN: VIN, ATTR_TRIGGER_TYPE: "engine_true"},
        )

    @pytest.mark.asyncio
    async def test_forced_poll_passes_force(
        self,
        coordinator: HyundaiKiaCoordinator,
        mock_client: AsyncMock,
        sample_view: VehicleView,
    ) -> None:
        """Test that a forced poll wakes the car even when idle."""
        await coordinator._async_update_data()
        mock_client.async_status.reset_mock()
        coordinator._force_next_refresh = True

        await coordinator._async_update_data()

        mock_client.async_status.assert_awaited_once_with(refresh=True)
        assert coordinator._force_next_refresh is False

    @pytest.mark.asyncio
    async def test_telemetry_failure_does_not_fail_poll(
        self,
        coordinator: HyundaiKiaCoordinator,
    ) -> None:
        """Test that an ABRP failure is logged and the poll still succeeds."""
        coordinator._telemetry = AsyncMock()
        coordinator._telemetry.async_send.side_effect = AbrpTelemetryError(
            "abrp down"
        )

        view = await coordinator._async_update_data()

        coordinator._telemetry.async_send.assert_awaited_once()
        assert view is not None
        assert coordinator.state.watchdog_counter == WATCHDOG_BUDGET


    @pytest.mark.asyncio
    async def test_unchanged_status_fires_nothing(
        self,
        coordinator: HyundaiKiaCoordinator,
        mock_hass: Mock,
    ) -> None:
        """Test that two polls of an idle car fire no events."""
        first = await coordinator._async_update_data()
        coordinator.data = first

        second = await coordinator._async_update_data()

        assert isinstance(second, VehicleView)
        assert second is not first
        mock_hass.bus.async_fire.assert_not_called()


class TestHyundaiKiaCoordinatorPolling:
    """Tests for starting, stopping and resuming polling."""

    @pytest.mark.asyncio
    async def test_start_polling_sets_interval_and_forces_poll(
        self,
        coordinator: HyundaiKiaCoordinator,
    ) -> None:
        """Test that start polling schedules and runs a forced poll."""
        with patch.object(coordinator, "async_refresh", new=AsyncMock()) as refresh:
            await coordinator.async_start_polling(10)

        assert coordinator.update_interval == timedelta(minutes=10)
        assert coordinator._force_next_refresh is True
        refresh.assert_awaited_once()

    def test_stop_polling_clears_interval(
        self,
        coordinator: HyundaiKiaCoordinator,
    ) -> None:
        """Test that stop polling removes the schedule."""
        coordinator.update_interval = timedelta(minutes=10)
        coordinator.async_stop_polling()
        assert coordinator.update_interval is None

    @pytest.mark.asyncio
    async def test_resume_reconnects_and_restarts_polling(
        self,
        coordinator: HyundaiKiaCoordinator,
        mock_client: AsyncMock,
    ) -> None:
        """Test that resuming after a restart reconnects and polls."""
        with patch.object(coordinator, "async_refresh", new=AsyncMock()) as refresh:
            await coordinator._async_resume(Mock())

        assert coordinator.client is mock_client
        assert coordinator.update_interval == timedelta(minutes=10)
        refresh.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_resume_keeps_polling_when_reconnect_fails(
        self,
        coordinator: HyundaiKiaCoordinator,
    ) -> None:
        """Test that a failed reconnect still restarts polling."""
        coordinator._client_factory.side_effect = HyundaiKiaApiClientError("down")
        with patch.object(coordinator, "async_refresh", new=AsyncMock()) as refresh:
            await coordinator._async_resume(Mock())

        assert coordinator.client is None
        refresh.assert_awaited_once()


class TestHyundaiKiaCoordinatorCommands:
    """Tests for the remote commands."""

    @pytest.mark.asyncio
    async def test_lock_schedules_forced_poll(
        self,
        coordinator: HyundaiKiaCoordinator,
        mock_client: AsyncMock,
        background_tasks: list[asyncio.Task],
    ) -> None:
        """Test that a command is sent and followed by a forced poll."""
        with (
            patch("custom_components.hyundai_kia.coordinator.COMMAND_SETTLE_DELAY", 0),
            patch.object(coordinator, "async_refresh", new=AsyncMock()) as refresh,
        ):
            await coordinator.async_lock()
            await asyncio.gather(*background_tasks)

        mock_client.async_lock.assert_awaited_once()
        refresh.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_command_failure_raises_home_assistant_error(
        self,
        coordinator: HyundaiKiaCoordinator,
        mock_client: AsyncMock,
    ) -> None:
        """Test that a failed command is reported and schedules nothing."""
        mock_client.async_unlock.side_effect = HyundaiKiaApiClientError("rejected")

        with pytest.raises(HomeAssistantError, match="rejected"):
            await coordinator.async_unlock()

        coordinator.config_entry.async_create_background_task.assert_not_called()

    @pytest.mark.asyncio
    async def test_defrost_on_uses_target_temperature(
        self,
        coordinator: HyundaiKiaCoordinator,
        mock_client: AsyncMock,
        sample_view: VehicleView,
    ) -> None:
        """Test that defrost starts climate with defrost and heating on."""
        coordinator.data = replace(sample_view, target_temperature=24.0)
        with patch.object(coordinator, "_async_delayed_poll", new=AsyncMock()):
            await coordinator.async_set_defrost(True)  # noqa: FBT003

        mock_client.async_start.assert_awaited_once_with(
            ClimateOptions(temperature=24.0, defrost=True, windscreen_heating=True)
        )

    @pytest.mark.asyncio
    async def test_climate_off_stops_climate(
        self,
        coordinator: HyundaiKiaCoordinator,
        mock_client: AsyncMock,
    ) -> None:
        """Test that turning climate off stops climate with default options."""
        with patch.object(coordinator, "_async_delayed_poll", new=AsyncMock()):
            await coordinator.async_set_climate(False)  # noqa: FBT003

        mock_client.async_stop.assert_awaited_once_with(ClimateOptions())


    @pytest.mark.asyncio
    async def test_back_to_back_commands_are_cancelled_on_unload(
        self,
        coordinator: HyundaiKiaCoordinator,
        mock_client: AsyncMock,
        background_tasks: list[asyncio.Task],
    ) -> None:
        """Test that every pending resync is owned by the entry."""
        with patch.object(coordinator, "async_refresh", new=AsyncMock()) as refresh:
            await coordinator.async_lock()
            await coordinator.async_set_climate(True)  # noqa: FBT003

            create_task = coordinator.config_entry.async_create_background_task
            assert create_task.call_count == 2
            assert len(background_tasks) == 2
            assert not any(task.done() for task in background_tasks)

            # Home Assistant cancels the entry's background tasks on unload.
            for task in background_tasks:
                task.cancel()
            await asyncio.gather(*background_tasks, return_exceptions=True)
            await coordinator.async_shutdown()

        assert all(task.cancelled() for task in background_tasks)
        mock_client.async_lock.assert_awaited_once()
        mock_client.async_start.assert_awaited_once()
        refresh.assert_not_awaited()


class TestHyundaiKiaCoordinatorShutdown:
    """Tests for async_shutdown."""

    @pytest.mark.asyncio
    async def test_shutdown_cancels_pending_restart(
        self,
        coordinator: HyundaiKiaCoordinator,
    ) -> None:
        """Test that unloading cancels a scheduled restart."""
        unsub = Mock()
        coordinator._restart_unsub = unsub

        await coordinator.async_shutdown()

        unsub.assert_called_once()
        assert coordinator._restart_unsub is None


class TestHyundaiKiaCoordinatorStore:
    """Tests for keeping the published view across reloads."""

    @pytest.fixture
    def stored_coordinator(
        self,
        mock_hass: Mock,
        mock_config_entry: Mock,
        mock_session: Mock,
        mock_client: AsyncMock,
        mock_store: Mock,
    ) -> HyundaiKiaCoordinator:
        """Create a coordinator backed by the mock store."""
        coordinator = HyundaiKiaCoordinator(
            mock_hass,
            mock_config_entry,
            mock_session,
            client_factory=AsyncMock(return_value=mock_client),
            store=mock_store,
        )
        coordinator._geocoder = AsyncMock()
        coordinator._geocoder.async_get_location_name.return_value = "Home"
        return coordinator

    def test_create_view_store_is_keyed_by_vin(self, mock_hass: Mock) -> None:
        """Test that each vehicle gets its own store."""
        with patch("custom_components.hyundai_kia.coordinator.Store") as mock_store_cls:
            create_view_store(mock_hass, VIN)

        mock_store_cls.assert_called_once_with(mock_hass, 1, f"hyundai_kia.{VIN}")

    @pytest.mark.asyncio
    async def test_restore_seeds_published_view(
        self,
        stored_coordinator: HyundaiKiaCoordinator,
        mock_store: Mock,
        sample_view: VehicleView,
    ) -> None:
        """Test that the stored view becomes the published view."""
        mock_store.async_load.return_value = asdict(sample_view)

        await stored_coordinator.async_restore()

        assert stored_coordinator.data == sample_view

    @pytest.mark.asyncio
    async def test_restore_without_stored_view(
        self,
        stored_coordinator: HyundaiKiaCoordinator,
    ) -> None:
        """Test that a first start leaves the view empty."""
        await stored_coordinator.async_restore()
        assert stored_coordinator.data is None

    @pytest.mark.asyncio
    async def test_restore_ignores_old_format(
        self,
        stored_coordinator: HyundaiKiaCoordinator,
        mock_store: Mock,
    ) -> None:
        """Test that a stored view with unknown fields is discarded."""
        mock_store.async_load.return_value = {"engine": False, "doors": "closed"}

        await stored_coordinator.async_restore()

        assert stored_coordinator.data is None

    @pytest.mark.asyncio
    async def test_first_poll_after_restart_fires_transition(
        self,
        stored_coordinator: HyundaiKiaCoordinator,
        mock_client: AsyncMock,
        mock_hass: Mock,
        mock_store: Mock,
        sample_view: VehicleView,
        status_factory: Callable[..., VehicleStatus],
    ) -> None:
        """Test that a car plugged in while Home Assistant was down fires."""
        mock_store.async_load.return_value = asdict(sample_view)
        mock_client.async_status.return_value = status_factory(charging=True)

        await stored_coordinator.async_restore()
        view = await stored_coordinator._async_update_data()

        assert view.charging is True
        mock_hass.bus.async_fire.assert_called_once_with(
            EVENT_VEHICLE_TRIGGER,
            {CONF_VIN: VIN, ATTR_TRIGGER_TYPE: "charging_true"},
        )

    @pytest.mark.asyncio
    async def test_publish_schedules_save(
        self,
        stored_coordinator: HyundaiKiaCoordinator,
        mock_store: Mock,
    ) -> None:
        """Test that every published view is saved with a delay."""
        view = await stored_coordinator._async_update_data()

        mock_store.async_delay_save.assert_called_once()
        data_func, delay = mock_store.async_delay_save.call_args[0]
        assert delay == STORE_SAVE_DELAY
        assert data_func() == asdict(view)

    @pytest.mark.asyncio
    async def test_shutdown_saves_published_view(
        self,
        stored_coordinator: HyundaiKiaCoordinator,
        mock_store: Mock,
        sample_view: VehicleView,
    ) -> None:
        """Test that unloading stores the last published view."""
        stored_coordinator.data = sample_view

        await stored_coordinator.async_shutdown()

        mock_store.async_save.assert_awaited_once_with(asdict(sample_view))
