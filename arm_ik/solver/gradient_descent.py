"""
梯度下降IK求解器
有限差分梯度 + 回溯线搜索；求解结束后运动链恢复到求解前的关节角
"""
import logging
import numpy as np
from typing import Optional

from .base import IKSolver
from .config import GradientDescentConfig
from .error_oracle import ErrorOracle
from .types import (
    IKRequest,
    IKResult,
    STOP_CANCELLED,
    STOP_CONVERGED,
    STOP_MAX_ITERATIONS,
    STOP_STAGNATED
)

logger = logging.getLogger(__name__)

# 每轮迭代线搜索的最大尝试次数，每次失败步长减半
LINE_SEARCH_ATTEMPTS = 5


class GradientDescentSolver(IKSolver):
    """
    以误差函数（位置 + 姿态 + 正则项）为目标的梯度下降求解器。
    求解期间会在运动链上试探大量中间关节角，结束时恢复原状，只通过返回值给出解。
    """

    metadata = {
        'name': 'Gradient Descent IK',
        'description': 'Gradient-based IK solver with TCP-aware error and backtracking line search',
        'version': '4.0.0'
    }
    config_class = GradientDescentConfig

    def solve(self, request: IKRequest) -> Optional[IKResult]:
        context = self._prepare(request)
        if context is None:
            return None

        config: GradientDescentConfig = self.config
        joints = context.joints
        # ignore_limits 的关节不做限位
        lower = np.array([-np.inf if d.ignore_limits else d.lower for d in joints], dtype=np.float64)
        upper = np.array([np.inf if d.ignore_limits else d.upper for d in joints], dtype=np.float64)

        oracle = ErrorOracle(
            root=context.chain.root,
            effector=context.effector,
            joints=joints,
            starting_angles=context.starting_angles,
            tcp_offset=context.tcp_offset,
            target=request.target,
            config=config
        )

        logger.info("[GradientDescent] Starting solve, target %s, orientation mode %s",
                    request.target.position, config.orientation_mode)

        # 初值取当前关节角，并保证落在限位内
        x = np.clip(context.starting_angles, lower, upper)
        x_best = x.copy()
        best_error = np.inf
        error_history = []
        stop_reason = STOP_MAX_ITERATIONS
        iterations = 0

        try:
            for iteration in range(config.max_iterations):
                if self._should_stop(request):
                    stop_reason = STOP_CANCELLED
                    break
                iterations = iteration + 1

                error = oracle.evaluate(x)

                # 记录历史最优解
                if error < best_error:
                    best_error = error
                    x_best = x.copy()

                # 收敛检查
                if error < config.tolerance:
                    error_history.append(best_error)
                    logger.info("[GradientDescent] Converged at iteration %d with error %.6g", iteration, error)
                    stop_reason = STOP_CONVERGED
                    break

                gradient = oracle.gradient(x, config.gradient_step)

                # 回溯线搜索：误差不下降则步长减半
                step_size = config.learning_rate
                improved = False
                for _ in range(LINE_SEARCH_ATTEMPTS):
                    x_new = np.clip(x - step_size * gradient, lower, upper)
                    new_error = oracle.evaluate(x_new)

                    if new_error < error:
                        x = x_new
                        improved = True
                        # 本轮接受的步长同样计入最优解
                        if new_error < best_error:
                            best_error = new_error
                            x_best = x.copy()
                        break
                    step_size *= 0.5
                error_history.append(best_error)

                if not improved:
                    logger.info("[GradientDescent] No improvement at iteration %d, stopping", iteration)
                    stop_reason = STOP_STAGNATED
                    break

                if iteration % 10 == 0:
                    logger.debug("[GradientDescent] Iteration %d: error = %.6f", iteration, error)
        finally:
            # 恢复求解前的关节角，运动链保持调用前的状态
            for descriptor in joints:
                descriptor.joint.set_angle(context.starting_angles[descriptor.index])
            context.chain.update_world_transforms()

        solution = {d.name: float(x_best[d.index]) for d in joints}
        logger.info("[GradientDescent] Solution found with error %.6g (%s)", best_error, stop_reason)

        return IKResult(
            joint_angles=solution,
            error=float(best_error),
            iterations=iterations,
            converged=stop_reason == STOP_CONVERGED,
            stop_reason=stop_reason,
            error_history=error_history
        )
