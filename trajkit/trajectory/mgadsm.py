"""
Multiple Gravity Assist trajectory with Deep Space Maneuvers (MGA-DSM).

A trajectory is an ordered list of nodes:

    Departure -> (DSM)* -> Flyby -> (DSM)* -> ... -> Flyby | Rendezvous | Insertion

A leg runs from the departure or a flyby to the next body node. Every
node contributes its free variables to one flat parameter vector, in
node order:

    Departure   epoch [MJD2000], plus (v_inf [km/s], norm_theta, norm_phi)
                when the next node is a DSM
    DSM         alpha (fraction of the remaining leg time before the
                maneuver), plus (dv [km/s], norm_theta, norm_phi) when the
                next node is also a DSM
    Flyby       time of flight [days], altitude [km], B-plane angle [rad]
    Rendezvous  time of flight [days]
    Insertion   time of flight [days], time in the target orbit [days]

Evaluation produces one delta-v per cost-bearing event, in chronological
order: the explicit departure impulse (when present), each explicit DSM
impulse, the Lambert correction closing every leg (the departure excess
velocity for a departure leg without DSMs), and the arrival cost of a
terminal rendezvous or insertion. Unpowered flybys contribute no entry.
"""
import logging
from dataclasses import dataclass, field
from typing import Optional, Sequence, Union

import numpy as np

from trajkit.core.constants import ASTRO_MU_SUN, DAY_TO_SEC, PENALTY_DELTA_V
from trajkit.core.conversion import normalized_spherical_to_cartesian
from trajkit.core.epoch import Epoch, Time
from trajkit.core.exceptions import EphemerisError, FlybyError, LambertError, TrajectoryDefinitionError
from trajkit.core.state import CartesianState, OrbitalElements
from trajkit.dynamics.propagation import Propagator, UniversalVariablePropagator
from trajkit.ephemeris.base import Ephemeris
from trajkit.ephemeris.physical import PhysicalProperties, PlanetaryProperties
from trajkit.trajectory.flyby import FlybyBody, FlybyModel, UnpoweredFlyby
from trajkit.trajectory.lambert import LambertAlgorithm, LambertSolver

logger = logging.getLogger(__name__)

Bounds = Optional[tuple]
Vector3 = tuple[float, float, float]


def _bounds_or_fixed(bounds, nominal):
    if bounds is None:
        return (nominal, nominal)
    return tuple(bounds)


@dataclass
class DepartureNode:
    """
    Launch from a body.

    Attributes:
        body (str): Departure body.
        epoch (Union[Epoch, float]): Departure epoch, an Epoch or MJD2000 days.
            Stored as MJD2000 days.
        v_inf (tuple): Departure impulse (magnitude [km/s], norm_theta, norm_phi),
            used when the next node is a DSM.
    """
    body: str
    epoch: Union[Epoch, float]
    epoch_bounds: Bounds = None
    v_inf: Vector3 = (0.0, 0.0, 0.0)
    v_inf_bounds: Bounds = None

    def __post_init__(self):
        if isinstance(self.epoch, Epoch):
            self.epoch = self.epoch.mjd2000()
        self.epoch_bounds = _bounds_or_fixed(self.epoch_bounds, self.epoch)
        self.v_inf_bounds = _bounds_or_fixed(self.v_inf_bounds, tuple(self.v_inf))


@dataclass
class DSMNode:
    """
    Deep-space maneuver inside a leg.

    Attributes:
        alpha (float): Fraction of the remaining leg time elapsed before the maneuver.
        delta_v (tuple): Explicit impulse (magnitude [km/s], norm_theta, norm_phi),
            used when the next node is also a DSM. The last DSM of a leg is
            sized by the Lambert arc to the next body.
    """
    alpha: float
    alpha_bounds: Bounds = None
    delta_v: Vector3 = (0.0, 0.0, 0.0)
    delta_v_bounds: Bounds = None

    def __post_init__(self):
        self.alpha_bounds = _bounds_or_fixed(self.alpha_bounds, self.alpha)
        self.delta_v_bounds = _bounds_or_fixed(self.delta_v_bounds, tuple(self.delta_v))


@dataclass
class FlybyNode:
    """Unpowered gravity assist; time of flight in days, altitude in km, angle in rad."""
    body: str
    time_of_flight: float
    altitude: float
    b_plane_angle: float
    time_of_flight_bounds: Bounds = None
    altitude_bounds: Bounds = None
    b_plane_angle_bounds: Bounds = None

    def __post_init__(self):
        self.time_of_flight_bounds = _bounds_or_fixed(self.time_of_flight_bounds, self.time_of_flight)
        self.altitude_bounds = _bounds_or_fixed(self.altitude_bounds, self.altitude)
        self.b_plane_angle_bounds = _bounds_or_fixed(self.b_plane_angle_bounds, self.b_plane_angle)


@dataclass
class RendezvousNode:
    """Terminal arrival matching the body velocity; time of flight in days."""
    body: str
    time_of_flight: float
    time_of_flight_bounds: Bounds = None

    def __post_init__(self):
        self.time_of_flight_bounds = _bounds_or_fixed(self.time_of_flight_bounds, self.time_of_flight)


@dataclass
class InsertionNode:
    """
    Terminal capture into a target orbit about the arrival body.

    Attributes:
        body (str): Arrival body.
        orbit (OrbitalElements): Target orbit about the body.
        time_of_flight (float): Leg time of flight [days].
        time_in_orbit (float): Time spent in the target orbit [days].
    """
    body: str
    orbit: OrbitalElements
    time_of_flight: float
    time_in_orbit: float = 0.0
    time_of_flight_bounds: Bounds = None
    time_in_orbit_bounds: Bounds = None

    def __post_init__(self):
        self.time_of_flight_bounds = _bounds_or_fixed(self.time_of_flight_bounds, self.time_of_flight)
        self.time_in_orbit_bounds = _bounds_or_fixed(self.time_in_orbit_bounds, self.time_in_orbit)


Node = Union[DepartureNode, DSMNode, FlybyNode, RendezvousNode, InsertionNode]
BODY_NODES = (FlybyNode, RendezvousNode, InsertionNode)


@dataclass
class TrajectoryEvaluation:
    """
    Result of one trajectory evaluation.

    Attributes:
        delta_v (np.ndarray): Cost of every cost-bearing event [km/s].
        epochs (list[Epoch]): Epoch of the departure and of every body node.
        feasible (bool): False when a penalty was substituted.
        final_state (CartesianState): Spacecraft state at the last body node.
    """
    delta_v: np.ndarray
    epochs: list = field(default_factory=list)
    feasible: bool = True
    final_state: Optional[CartesianState] = None

    @property
    def total_delta_v(self) -> float:
        return float(np.sum(self.delta_v))


def insertion_delta_v(v_inf: float, mu: float, orbit: OrbitalElements) -> float:
    """
    Impulse at periapsis capturing from a hyperbola with excess speed v_inf
    into the target orbit.

    Args:
        v_inf (float): Arrival hyperbolic excess speed [km/s].
        mu (float): Gravitational parameter of the arrival body [km^3/s^2].
        orbit (OrbitalElements): Target orbit.

    Returns:
        float: Delta-v [km/s].
    """
    e = orbit.eccentricity
    rp = orbit.semi_major_axis * (1.0 - e)
    if rp <= 0.0:
        raise TrajectoryDefinitionError(f"Target orbit has non-positive periapsis radius {rp} km.")
    v_hyperbola = np.sqrt(v_inf**2 + 2.0 * mu / rp)
    v_orbit = np.sqrt(mu * (1.0 + e) / rp)
    return float(abs(v_hyperbola - v_orbit))


class MGADSMTrajectory:
    """
    Evaluator for an MGA-DSM leg chain.

    Algorithms and data sources are injected; defaults are the universal
    variable propagator, the universal variable Lambert solver, the
    unpowered flyby model and the planetary constants table.

    Args:
        ephemeris (Ephemeris): Source of body states.
        nodes (Sequence[Node], optional): Initial node list.
        properties (PhysicalProperties, optional): Radii and gravitational parameters.
        lambert (LambertAlgorithm, optional): Lambert solver.
        flyby (FlybyModel, optional): Flyby model.
        propagator (Propagator, optional): Coast propagator.
        mu (float): Gravitational parameter of the central body [km^3/s^2].
        penalty (float): Delta-v substituted for infeasible events [km/s].
    """

    def __init__(self, ephemeris: Ephemeris, nodes: Sequence[Node] = (),
                 properties: PhysicalProperties = None,
                 lambert: LambertAlgorithm = None,
                 flyby: FlybyModel = None,
                 propagator: Propagator = None,
                 mu: float = ASTRO_MU_SUN,
                 penalty: float = PENALTY_DELTA_V):
        self.ephemeris = ephemeris
        self.nodes = list(nodes)
        self.properties = properties if properties is not None else PlanetaryProperties()
        self.lambert = lambert if lambert is not None else LambertSolver()
        self.flyby = flyby if flyby is not None else UnpoweredFlyby()
        self.propagator = propagator if propagator is not None else UniversalVariablePropagator()
        self.mu = mu
        self.penalty = penalty

    # ------------------------------------------------------------------
    # Building
    # ------------------------------------------------------------------

    def add_departure(self, body: str, epoch: Union[Epoch, float], **kwargs) -> 'MGADSMTrajectory':
        self.nodes.append(DepartureNode(body, epoch, **kwargs))
        return self

    def add_dsm(self, alpha: float, **kwargs) -> 'MGADSMTrajectory':
        self.nodes.append(DSMNode(alpha, **kwargs))
        return self

    def add_flyby(self, body: str, time_of_flight: float, altitude: float, b_plane_angle: float,
                  **kwargs) -> 'MGADSMTrajectory':
        self.nodes.append(FlybyNode(body, time_of_flight, altitude, b_plane_angle, **kwargs))
        return self

    def add_rendezvous(self, body: str, time_of_flight: float, **kwargs) -> 'MGADSMTrajectory':
        self.nodes.append(RendezvousNode(body, time_of_flight, **kwargs))
        return self

    def add_insertion(self, body: str, orbit: OrbitalElements, time_of_flight: float,
                      time_in_orbit: float = 0.0, **kwargs) -> 'MGADSMTrajectory':
        self.nodes.append(InsertionNode(body, orbit, time_of_flight, time_in_orbit, **kwargs))
        return self

    def validate(self):
        """
        Checks the node sequence.

        Raises:
            TrajectoryDefinitionError: If the sequence is malformed.
        """
        if len(self.nodes) < 2:
            raise TrajectoryDefinitionError("A trajectory needs at least two nodes.")
        if not isinstance(self.nodes[0], DepartureNode):
            raise TrajectoryDefinitionError("The first node must be a departure.")
        if not isinstance(self.nodes[-1], BODY_NODES):
            raise TrajectoryDefinitionError("The last node must be a flyby, rendezvous or insertion.")
        for i, node in enumerate(self.nodes[1:], start=1):
            if isinstance(node, DepartureNode):
                raise TrajectoryDefinitionError(f"Node {i}: only the first node may be a departure.")
            if isinstance(node, (RendezvousNode, InsertionNode)) and i != len(self.nodes) - 1:
                raise TrajectoryDefinitionError(f"Node {i}: {type(node).__name__} must be the last node.")
        _, lower, upper = self._layout()
        if np.any(lower > upper):
            raise TrajectoryDefinitionError("A lower bound exceeds its upper bound.")

    # ------------------------------------------------------------------
    # Parameter vector
    # ------------------------------------------------------------------

    def _has_impulse_vector(self, index: int) -> bool:
        node = self.nodes[index]
        next_is_dsm = index + 1 < len(self.nodes) and isinstance(self.nodes[index + 1], DSMNode)
        return isinstance(node, (DepartureNode, DSMNode)) and next_is_dsm

    def _layout(self) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
        nominal, lower, upper = [], [], []

        def push(value, bounds):
            nominal.append(value)
            lower.append(bounds[0])
            upper.append(bounds[1])

        def push_vector(values, bounds):
            for k in range(3):
                push(values[k], (bounds[0][k], bounds[1][k]))

        for i, node in enumerate(self.nodes):
            if isinstance(node, DepartureNode):
                push(node.epoch, node.epoch_bounds)
                if self._has_impulse_vector(i):
                    push_vector(node.v_inf, node.v_inf_bounds)
            elif isinstance(node, DSMNode):
                push(node.alpha, node.alpha_bounds)
                if self._has_impulse_vector(i):
                    push_vector(node.delta_v, node.delta_v_bounds)
            elif isinstance(node, FlybyNode):
                push(node.time_of_flight, node.time_of_flight_bounds)
                push(node.altitude, node.altitude_bounds)
                push(node.b_plane_angle, node.b_plane_angle_bounds)
            elif isinstance(node, RendezvousNode):
                push(node.time_of_flight, node.time_of_flight_bounds)
            elif isinstance(node, InsertionNode):
                push(node.time_of_flight, node.time_of_flight_bounds)
                push(node.time_in_orbit, node.time_in_orbit_bounds)
            else:
                raise TrajectoryDefinitionError(f"Unsupported node type {type(node).__name__}.")
        return np.array(nominal, dtype=float), np.array(lower, dtype=float), np.array(upper, dtype=float)

    def get_parameter_count(self) -> int:
        return len(self._layout()[0])

    def get_parameter_bounds(self) -> tuple[np.ndarray, np.ndarray]:
        """Returns (lower, upper) bounds, parallel to the parameter vector."""
        _, lower, upper = self._layout()
        return lower, upper

    def get_nominal_parameters(self) -> np.ndarray:
        """Parameter vector built from the nominal values stored on the nodes."""
        return self._layout()[0]

    def get_cost_count(self) -> int:
        """Number of delta-v entries returned by evaluate."""
        count = 0
        for i, node in enumerate(self.nodes):
            if self._has_impulse_vector(i):
                count += 1
            if isinstance(node, BODY_NODES):
                count += 1
            if isinstance(node, (RendezvousNode, InsertionNode)):
                count += 1
        return count

    def _split_parameters(self, parameters: np.ndarray) -> list[dict]:
        """Assigns the flat vector to the nodes."""
        values = []
        cursor = 0

        def take(n):
            nonlocal cursor
            chunk = parameters[cursor:cursor + n]
            cursor += n
            return chunk

        for i, node in enumerate(self.nodes):
            entry = {}
            if isinstance(node, DepartureNode):
                entry['epoch'] = take(1)[0]
            elif isinstance(node, DSMNode):
                alpha = take(1)[0]
                # Endpoints are degenerate but evaluable: 0 burns at the leg start, 1 leaves no Lambert arc
                if not 0.0 <= alpha <= 1.0:
                    raise TrajectoryDefinitionError(f"Node {i}: DSM alpha {alpha} outside [0, 1].")
                entry['alpha'] = alpha
            elif isinstance(node, FlybyNode):
                entry['tof'], entry['altitude'], entry['b_plane_angle'] = take(3)
            elif isinstance(node, RendezvousNode):
                entry['tof'] = take(1)[0]
            elif isinstance(node, InsertionNode):
                entry['tof'], entry['time_in_orbit'] = take(2)
            if self._has_impulse_vector(i):
                entry['impulse'] = normalized_spherical_to_cartesian(*take(3))
            values.append(entry)
        return values

    # ------------------------------------------------------------------
    # Evaluation
    # ------------------------------------------------------------------

    def evaluate(self, parameters: Sequence[float]) -> np.ndarray:
        """
        Delta-v costs of the trajectory described by a parameter vector.

        Args:
            parameters (Sequence[float]): Flat parameter vector, see the module docstring.

        Returns:
            np.ndarray: Delta-v of each cost-bearing event [km/s]. Infeasible
                events and everything after them carry the penalty value.

        Raises:
            TrajectoryDefinitionError: If the node sequence or the vector is malformed.
        """
        return self.evaluate_detailed(parameters).delta_v

    def evaluate_detailed(self, parameters: Sequence[float]) -> TrajectoryEvaluation:
        """Same as evaluate, also returning node epochs and the final state."""
        self.validate()
        parameters = np.asarray(parameters, dtype=float)
        expected = self.get_parameter_count()
        if parameters.shape != (expected,):
            raise TrajectoryDefinitionError(
                f"Expected a parameter vector of length {expected}, got shape {parameters.shape}.")
        values = self._split_parameters(parameters)

        costs = []
        epoch = Epoch.from_mjd2000(values[0]['epoch'])
        epochs = [epoch]
        departure = self._body_state(self.nodes[0].body, epoch)
        position, velocity = departure.position, departure.velocity
        feasible = True

        try:
            if 'impulse' in values[0]:
                velocity = velocity + values[0]['impulse']
                costs.append(np.linalg.norm(values[0]['impulse']))

            for start, dsm_indices, end in self._legs():
                node = self.nodes[end]
                tof = values[end]['tof'] * DAY_TO_SEC
                arrival_epoch = epoch + Time.from_seconds(tof)
                target = self._body_state(node.body, arrival_epoch)

                remaining = tof
                for idx in dsm_indices:
                    coast = values[idx]['alpha'] * remaining
                    remaining -= coast
                    state = self.propagator.propagate(CartesianState(position, velocity), self.mu,
                                                      Time.from_seconds(coast))
                    position, velocity = state.position, state.velocity
                    if 'impulse' in values[idx]:
                        velocity = velocity + values[idx]['impulse']
                        costs.append(np.linalg.norm(values[idx]['impulse']))

                v1, v2 = self.lambert.evaluate(position, target.position, remaining, self.mu)
                costs.append(np.linalg.norm(v1 - velocity))
                position, velocity = target.position, v2

                if isinstance(node, FlybyNode):
                    body = FlybyBody(target.velocity,
                                     self._property(self.properties.get_radius, node.body),
                                     self._property(self.properties.get_gravitational_parameter, node.body))
                    velocity = self.flyby.evaluate(v2, body, values[end]['altitude'],
                                                   values[end]['b_plane_angle'])
                elif isinstance(node, RendezvousNode):
                    costs.append(np.linalg.norm(v2 - target.velocity))
                elif isinstance(node, InsertionNode):
                    v_inf = np.linalg.norm(v2 - target.velocity)
                    mu_body = self._property(self.properties.get_gravitational_parameter, node.body)
                    costs.append(insertion_delta_v(v_inf, mu_body, node.orbit))
                    velocity = target.velocity

                epoch = arrival_epoch
                epochs.append(epoch)

                if not np.all(np.isfinite(costs)) or not np.all(np.isfinite(velocity)):
                    raise LambertError("Non-finite intermediate result.")
        except (LambertError, FlybyError) as e:
            logger.debug("Infeasible trajectory, applying penalty: %s", e)
            feasible = False

        delta_v = np.full(self.get_cost_count(), self.penalty)
        for k, cost in enumerate(costs):
            if np.isfinite(cost):
                delta_v[k] = cost
        return TrajectoryEvaluation(delta_v, epochs, feasible, CartesianState(position, velocity))

    def _legs(self) -> list[tuple[int, list[int], int]]:
        """(start index, DSM indices, end index) for every leg."""
        legs = []
        start = 0
        dsms = []
        for i in range(1, len(self.nodes)):
            if isinstance(self.nodes[i], DSMNode):
                dsms.append(i)
            else:
                legs.append((start, dsms, i))
                start, dsms = i, []
        return legs

    def _body_state(self, body: str, epoch: Epoch) -> CartesianState:
        try:
            return self.ephemeris.get_state(body, epoch)
        except EphemerisError as e:
            logger.error("Ephemeris query failed, substituting a zero state: %s", e)
            return CartesianState()

    @staticmethod
    def _property(getter, body: str) -> float:
        try:
            return getter(body)
        except EphemerisError as e:
            logger.error("Physical property lookup failed, substituting zero: %s", e)
            return 0.0
