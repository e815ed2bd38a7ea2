"""TensorFlow evaluation of escape counts for one tile."""

from __future__ import annotations

from typing import Optional

import numpy as np
import tensorflow as tf

from .escape import HORIZON_SQ


@tf.function
def _escape_step(
    zx: tf.Tensor,
    zy: tf.Tensor,
    cr: tf.Tensor,
    ci: tf.Tensor,
    ns: tf.Tensor,
    active: tf.Tensor,
    max_iterations: tf.Tensor,
) -> tuple[tf.Tensor, tf.Tensor, tf.Tensor, tf.Tensor]:
    """Advance every point that is still iterating by one step."""

    zx2 = zx * zx
    zy2 = zy * zy
    zy_next = 2.0 * zx * zy + ci
    zx_next = zx2 - zy2 + cr
    zx = tf.where(active, zx_next, zx)
    zy = tf.where(active, zy_next, zy)
    ns = ns + tf.cast(active, tf.int32)
    horizon = tf.constant(HORIZON_SQ, dtype=zx2.dtype)
    keep = tf.logical_and(zx2 + zy2 <= horizon, ns < max_iterations)
    return zx, zy, ns, tf.logical_and(active, keep)


@tf.function
def _escape_run(
    cr: tf.Tensor,
    ci: tf.Tensor,
    active: tf.Tensor,
    max_iterations: tf.Tensor,
) -> tf.Tensor:
    """Iterate until every pending point escaped or hit the cap."""

    max_iterations = tf.cast(max_iterations, tf.int32)
    i = tf.constant(0, dtype=tf.int32)
    zx = tf.zeros_like(cr)
    zy = tf.zeros_like(cr)
    ns = tf.zeros_like(cr, dtype=tf.int32)

    def cond(i, zx, zy, ns, active):
        return tf.logical_and(tf.less(i, max_iterations), tf.reduce_any(active))

    def body(i, zx, zy, ns, active):
        zx, zy, ns, active = _escape_step(zx, zy, cr, ci, ns, active, max_iterations)
        return i + 1, zx, zy, ns, active

    _, _, _, ns, _ = tf.while_loop(cond, body, (i, zx, zy, ns, active))
    return ns


def escape_tile(real: np.ndarray, imag: np.ndarray, max_iter: int, *, device: Optional[str] = None) -> np.ndarray:
    """Escape counts of the grid spanned by column reals and row imaginaries."""

    with tf.device(device if device is not None else "/CPU:0"):
        real_tf = tf.convert_to_tensor(real, dtype=tf.float64)
        imag_tf = tf.convert_to_tensor(imag, dtype=tf.float64)
        cr, ci = tf.meshgrid(real_tf, imag_tf)

        x = cr - 0.25
        q = x * x + ci * ci
        interior = tf.logical_or(
            q * (q + x) < 0.25 * ci * ci,
            (cr + 1.0) * (cr + 1.0) + ci * ci < 0.0625,
        )
        exterior = tf.logical_and(tf.logical_not(interior), cr * cr + ci * ci > HORIZON_SQ)
        pending = tf.logical_not(tf.logical_or(interior, exterior))

        max_iterations = tf.constant(max_iter, dtype=tf.int32)
        ns = _escape_run(cr, ci, pending, max_iterations)
        ns = tf.where(interior, tf.fill(tf.shape(ns), max_iterations), ns)

    return ns.numpy()
